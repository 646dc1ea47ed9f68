"""
Shared fixtures.

fake_engine builds a small executable Python script that behaves like a
UCI engine: it answers "uci" and "isready", logs every command it receives,
and replays a fixed transcript after "go".
"""

import stat
import sys
import textwrap

import pytest


FAKE_ENGINE_TEMPLATE = textwrap.dedent('''\
    #!{python}
    import sys
    import time

    OUTPUT = {output!r}
    AFTER_GO = {after_go!r}
    BYTE_BY_BYTE = {byte_by_byte!r}

    log = open({log_path!r}, "w")
    for line in sys.stdin:
        cmd = line.strip()
        log.write(cmd + "\\n")
        log.flush()
        if cmd == "uci":
            sys.stdout.write("id name FakeFish\\nid author Tests\\nuciok\\n")
            sys.stdout.flush()
        elif cmd == "isready":
            sys.stdout.write("readyok\\n")
            sys.stdout.flush()
        elif cmd.startswith("go"):
            if BYTE_BY_BYTE:
                for char in OUTPUT:
                    sys.stdout.write(char)
                    sys.stdout.flush()
            else:
                sys.stdout.write(OUTPUT)
                sys.stdout.flush()
            if AFTER_GO == "hang":
                time.sleep(60)
            elif AFTER_GO == "exit":
                sys.exit(0)
        elif cmd == "quit":
            break
''')


@pytest.fixture
def fake_engine(tmp_path):
    """
    Factory for fake engine executables.

    Args (of the returned function):
        output: Text written after "go"
        after_go: None, "hang" (sleep instead of reading) or "exit"
        byte_by_byte: Flush output one character at a time

    Returns:
        (engine_path, command_log_path)
    """
    counter = [0]

    def make(output, after_go=None, byte_by_byte=False):
        counter[0] += 1
        script_path = tmp_path / f"fake_engine_{counter[0]}.py"
        log_path = tmp_path / f"fake_engine_{counter[0]}.log"

        script_path.write_text(
            FAKE_ENGINE_TEMPLATE.format(
                python=sys.executable,
                output=output,
                after_go=after_go,
                byte_by_byte=byte_by_byte,
                log_path=str(log_path),
            )
        )
        script_path.chmod(script_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        return str(script_path), log_path

    return make
