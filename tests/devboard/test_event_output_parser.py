from devboard.components.tui.event_output_parser import EventLineParser


def test_json_event_lines_become_bus_events():
    parser = EventLineParser()
    events = list(parser.parse_line('{"event": "WORKER_MSG", "id": "tsc", "msg": "ok\\n"}\n'))
    assert events == [("WORKER_MSG", {"id": "tsc", "msg": "ok\n"})]


def test_event_without_fields():
    parser = EventLineParser()
    assert list(parser.parse_line('{"event": "NEW_SESSION"}')) == [("NEW_SESSION", {})]


def test_plain_output_becomes_console_message():
    parser = EventLineParser()
    assert list(parser.parse_line("  server listening on :8080  \n")) == [
        ("CONSOLE", {"level": "log", "args": ["server listening on :8080"]})
    ]


def test_unknown_kinds_and_broken_json_fall_back_to_console():
    parser = EventLineParser()
    assert list(parser.parse_line('{"event": "REBOOT"}')) == [
        ("CONSOLE", {"level": "log", "args": ['{"event": "REBOOT"}']})
    ]
    assert list(parser.parse_line('{"event": "WORKER_MSG", ')) == [
        ("CONSOLE", {"level": "log", "args": ['{"event": "WORKER_MSG",']})
    ]


def test_ansi_escapes_and_blank_lines_are_dropped():
    parser = EventLineParser()
    assert list(parser.parse_line("\x1b[32mready\x1b[0m")) == [
        ("CONSOLE", {"level": "log", "args": ["ready"]})
    ]
    assert list(parser.parse_line("   \n")) == []
    assert list(parser.parse_line("\x1b[2K")) == []
