from __future__ import annotations

import re
from pathlib import Path

import pytest

from weaver import render, shell
from weaver.context import Context, ScriptNames
from weaver.model import Command, CommandOutput
from weaver.render import EntryFailure, render_entry


def leftover_scripts(directory: Path) -> list[Path]:
    return sorted(directory.glob(".weaver-commands-*.sh"))


def test_run_multiple_commands(context, tmp_path):
    md = render_entry(Command(commands=("echo 1", "echo 2")), context)
    assert md == "```shell\necho 1\necho 2\n```\n"
    assert leftover_scripts(tmp_path) == []


def test_run_multiple_commands_and_show_output(context):
    entry = Command(commands=("echo 1", "echo 2"), output=CommandOutput())
    md = render_entry(entry, context)
    assert md == "```shell\necho 1\necho 2\n```\n\n_stdout_\n\n```\n1\n2\n```\n"


def test_custom_caption_and_content_type(context):
    entry = Command(
        commands=("echo '{\"name\": \"Albert\"}'",),
        output=CommandOutput(caption="The command will print:", content_type="json"),
    )
    md = render_entry(entry, context)
    assert md.endswith('\nThe command will print:\n\n```json\n{"name": "Albert"}\n```\n')


def test_hidden_output(context):
    entry = Command(commands=("echo hidden",), output=CommandOutput(show=False))
    assert render_entry(entry, context) == "```shell\necho hidden\n```\n"


def test_empty_stdout_has_no_block(context):
    entry = Command(commands=("true",), output=CommandOutput())
    assert render_entry(entry, context) == "```shell\ntrue\n```\n"


def test_stderr_block(context):
    entry = Command(commands=("echo out", "echo err >&2"), output=CommandOutput())
    md = render_entry(entry, context)
    assert md == (
        "```shell\necho out\necho err >&2\n```\n"
        "\n_stdout_\n\n```\nout\n```\n"
        "\n_stderr_\n\n```\nerr\n```\n"
    )


def test_run_indented_commands(context):
    entry = Command(commands=("echo 'Test'",), output=CommandOutput(), indent=3)
    md = render_entry(entry, context)
    assert md == "   ```shell\n   echo 'Test'\n   ```\n\n   _stdout_\n\n   ```\n   Test\n   ```\n"


def test_run_commands_in_working_dir(context, tmp_path):
    (tmp_path / "target").mkdir()
    entry = Command(commands=("pwd",), working_dir="target", output=CommandOutput())
    md = render_entry(entry, context)
    assert md == (
        "```shell\n"
        "# Running command from within the target directory\n"
        "(cd 'target'\n"
        "pwd\n"
        ")\n"
        "```\n"
        f"\n_stdout_\n\n```\n{(tmp_path / 'target').resolve()}\n```\n"
    )
    assert leftover_scripts(tmp_path / "target") == []


def test_script_is_executable_and_named_uniquely(context):
    entry = Command(commands=('[ -x "$0" ] && basename "$0"',), output=CommandOutput())
    md = render_entry(entry, context)
    assert re.search(r"\n\.weaver-commands-\d+-\d+\.sh\n", md)


def test_script_stops_at_first_failing_command(context, tmp_path):
    entry = Command(commands=("false", "touch reached"))
    with pytest.raises(EntryFailure):
        render_entry(entry, context)
    assert not (tmp_path / "reached").exists()


def test_failing_command_is_a_rendering_error(context, tmp_path):
    entry = Command(commands=("echo out", "echo err >&2", "exit 3"))
    with pytest.raises(EntryFailure) as info:
        render_entry(entry, context)
    assert info.value.exit_code == 3
    assert info.value.markdown == (
        "```shell\necho out\necho err >&2\nexit 3\n```\n"
        "\nError\n\n```\nout\nerr\n```\n"
    )
    assert leftover_scripts(tmp_path) == []


def test_failure_markdown_is_indented(context):
    entry = Command(commands=("exit 1",), indent=2)
    with pytest.raises(EntryFailure) as info:
        render_entry(entry, context)
    assert info.value.markdown == "  ```shell\n  exit 1\n  ```\n"


def test_on_failure_commands_run_after_failure(context, tmp_path):
    entry = Command(commands=("exit 1",), on_failure_commands=("touch marker",))
    with pytest.raises(EntryFailure):
        render_entry(entry, context)
    assert (tmp_path / "marker").exists()
    assert leftover_scripts(tmp_path) == []


def test_on_failure_commands_keep_going_after_errors(context, tmp_path):
    entry = Command(
        commands=("exit 1",),
        on_failure_commands=("false", "cat << EOF > error.txt", "It failed!", "EOF"),
    )
    with pytest.raises(EntryFailure):
        render_entry(entry, context)
    assert (tmp_path / "error.txt").read_text() == "It failed!\n"


def test_on_failure_commands_do_not_run_on_success(context, tmp_path):
    entry = Command(commands=("true",), on_failure_commands=("touch marker",))
    render_entry(entry, context)
    assert not (tmp_path / "marker").exists()


def test_should_fail_with_failing_command_succeeds(context, tmp_path):
    entry = Command(
        commands=("failing on purpose",),
        should_fail=True,
        on_failure_commands=("touch marker",),
    )
    md = render_entry(entry, context)
    assert md == "```shell\nfailing on purpose\n```\n"
    assert (tmp_path / "marker").exists()


def test_should_fail_with_succeeding_command_is_an_error(context):
    entry = Command(commands=("echo fine",), should_fail=True)
    with pytest.raises(EntryFailure) as info:
        render_entry(entry, context)
    assert info.value.exit_code == 0
    assert "\nError\n\n```\nfine\n```\n" in info.value.markdown


def test_skip_tag_renders_without_running(context, monkeypatch, tmp_path):
    def fail(*args, **kwargs):
        raise AssertionError("skipped commands must not run")

    monkeypatch.setattr(render, "run_commands", fail)
    monkeypatch.setattr(shell.subprocess, "run", fail)

    entry = Command(commands=("touch created",), tags=frozenset({"skip"}), indent=1)
    md = render_entry(entry, context)
    assert md == " ```shell\n touch created\n ```\n"
    assert not (tmp_path / "created").exists()


def test_variables_are_substituted(tmp_path):
    context = Context(current_dir=tmp_path, variables={"NAME": "Albert", "DIR": "work"})
    (tmp_path / "work").mkdir()
    entry = Command(
        commands=('echo "Hello ${NAME}"', 'i=1; echo "${i}"'),
        working_dir="${DIR}",
        output=CommandOutput(),
    )
    md = render_entry(entry, context)
    assert md == (
        "```shell\n"
        "# Running command from within the work directory\n"
        "(cd 'work'\n"
        'echo "Hello Albert"\n'
        'i=1; echo "${i}"\n'
        ")\n"
        "```\n"
        "\n_stdout_\n\n```\nHello Albert\n1\n```\n"
    )


def test_spawn_failure_is_a_rendering_error(context, monkeypatch, tmp_path):
    def cannot_spawn(*args, **kwargs):
        raise FileNotFoundError("/bin/sh")

    monkeypatch.setattr(shell.subprocess, "run", cannot_spawn)

    entry = Command(commands=("echo 1",), on_failure_commands=("echo cleanup",))
    with pytest.raises(EntryFailure) as info:
        render_entry(entry, context)
    assert "Failed to run the shell script" in info.value.markdown
    assert leftover_scripts(tmp_path) == []


def test_missing_working_dir_is_fatal(context):
    entry = Command(commands=("true",), working_dir="does-not-exist")
    with pytest.raises(OSError):
        render_entry(entry, context)


def test_invalid_utf8_output_is_fatal(context, tmp_path):
    entry = Command(commands=("printf '\\377\\376'",), output=CommandOutput())
    with pytest.raises(UnicodeDecodeError):
        render_entry(entry, context)
    assert leftover_scripts(tmp_path) == []


def test_cleanup_failure_is_only_a_warning(context, tmp_path, capsys):
    entry = Command(commands=('rm "$0"', "echo still fine"), output=CommandOutput())
    md = render_entry(entry, context)
    assert md.endswith("```\nstill fine\n```\n")
    assert "Failed to delete the shell script" in capsys.readouterr().err


def test_long_output(context):
    entry = Command(
        commands=('i=1; while [ "${i}" -le 1000 ]; do echo "[${i}] The quick brown fox"; i=$((i + 1)); done',),
        output=CommandOutput(),
    )
    md = render_entry(entry, context)
    expected = "".join(f"[{i}] The quick brown fox\n" for i in range(1, 1001))
    assert md.endswith(f"\n_stdout_\n\n```\n{expected}```\n")


def test_scripts_get_distinct_names_within_a_run(tmp_path):
    names = ScriptNames(start_ms=42)
    context = Context(current_dir=tmp_path, scripts=names)
    render_entry(Command(commands=("true",)), context)
    render_entry(Command(commands=("true",)), context)
    assert names.next_name() == f"{names.prefix}-42-3.sh"


def test_comments_are_printed_not_rendered(context, capsys):
    entry = Command(commands=("true",), comments=("prepares the workspace",))
    assert render_entry(entry, context) == "```shell\ntrue\n```\n"
    assert "# prepares the workspace\n$ true\n" in capsys.readouterr().out


def test_cleanup_in_a_missing_directory_is_only_a_warning(context, tmp_path, capsys):
    shell.run_cleanup_commands(tmp_path / "missing", ("touch marker",), context.scripts)
    assert "Failed to run clean-up commands" in capsys.readouterr().err
