"""Tests for statement translation and the Python execution backend."""

import pytest

from pyejs.compiler.backend import BlockWriter, PythonBackend, assigned_names, quote_literal
from pyejs.errors import TemplateRuntimeError, TemplateSyntaxError
from pyejs.options import Options
from pyejs.parser import assemble
from pyejs.escape import escape_xml


def write(*fragments):
    writer = BlockWriter()
    for fragment in fragments:
        writer.statement(fragment)
    return writer


def run(text, data=None, **options):
    opts = Options.coerce(options)
    program = assemble(
        text,
        compile_debug=opts.compile_debug,
        is_async=opts.is_async,
    )
    loaded = PythonBackend().load(program, opts)
    return loaded(data or {}, opts.escape_function, None, None)


def test_quote_literal():
    assert quote_literal('a"b\\c\r\n') == '"a\\"b\\\\c\\r\\n"'


def test_brace_blocks():
    """A trailing ``{`` opens a block and ``}`` closes it."""
    writer = write(" if x { ", "y = 1", " } ")

    assert writer.lines == ["if x:", "    y = 1"]
    assert writer.open_blocks == 0


def test_close_and_reopen_on_one_line():
    writer = write("if x {", "a()", "} else if y {", "b()", "} else {", "c()", "}")

    assert writer.lines == [
        "if x:",
        "    a()",
        "elif y:",
        "    b()",
        "else:",
        "    c()",
    ]


def test_colon_blocks_closed_by_end():
    """Continuation keywords close the previous block on their own."""
    writer = write("for i in items:", "a(i)", "else:", "b()", "end")

    assert writer.lines == ["for i in items:", "    a(i)", "else:", "    b()"]
    assert writer.open_blocks == 0


def test_empty_block_gets_pass():
    writer = write("while False {", "}")

    assert writer.lines == ["while False:", "    pass"]


def test_indentation_in_tags_is_ignored():
    writer = write("if x:\n        a()\n    b()\nend")

    assert writer.lines == ["if x:", "    a()", "    b()"]


def test_bracket_continuation():
    """A line left inside open brackets is not treated as a block opener."""
    writer = write("d = {", "'a': 1,", "}", "if d {", "}")

    assert writer.lines == ["d = {", "'a': 1,", "}", "if d:", "    pass"]


def test_trailing_comment_is_stripped():
    writer = write("if x {  # open", "y = '#'  # keep string", "}")

    assert writer.lines == ["if x:", "    y = '#'"]


def test_unexpected_close():
    with pytest.raises(TemplateSyntaxError, match="no block is open"):
        write("}")


def test_unclosed_block_is_reported():
    with pytest.raises(TemplateSyntaxError, match="1 block"):
        run("<% if x { %>open")


def test_generated_signature():
    program = assemble("x", compile_debug=False)
    source = PythonBackend().generate(program, Options(localsName="ctx"))

    assert source.startswith("def __template(ctx, escape_fn, include, rethrow):")
    assert "try:" not in source


def test_generated_async_signature():
    program = assemble("x", is_async=True)
    source = PythonBackend().generate(program, Options())

    assert source.startswith("async def __template(")
    assert "__gather" in source


def test_invalid_generated_code():
    with pytest.raises(TemplateSyntaxError, match="while compiling template"):
        run("<% x = = 1 %>")


def test_render_loop():
    out = run("<% for i in items { %>[<%= i %>]<% } %>", {"items": [1, 2, 3]})

    assert out == "[1][2][3]"


def test_none_output_is_skipped():
    assert run("a<%- value %>b<%= value %>c", {"value": None}) == "abc"


def test_escape_function_is_used():
    assert run("<%= v %>", {"v": "<b>"}) == escape_xml("<b>")
    assert run("<%= v %>", {"v": "b"}, escape=str.upper) == "B"


def test_sync_awaitable_is_rejected():
    async def fetch():
        return "x"

    with pytest.raises(TemplateRuntimeError, match="awaitable"):
        run("<%- fetch() %>", {"fetch": fetch}, compileDebug=False)
    with pytest.raises(TemplateRuntimeError, match="awaitable"):
        run("<%= fetch() %>", {"fetch": fetch}, compileDebug=False)


def test_program_rebinds_namespace_per_call():
    """Each call sees only the data it was given."""
    opts = Options()
    program = PythonBackend().load(assemble("<%= x %>"), opts)

    assert program({"x": 1}, escape_xml, None, None) == "1"
    assert program({"x": 2}, escape_xml, None, None) == "2"
    with pytest.raises(NameError):
        program({}, escape_xml, None, lambda err, *args: None)


def test_quote_literal_escapes_non_printable():
    assert quote_literal("a\x00b\tc\u2028é") == '"a\\x00b\\x09c\\u2028é"'


def test_multiline_string_kept_verbatim():
    """Continuation lines of a triple-quoted string are not re-indented."""
    writer = write('if x {', 's = """a', '  b  ', '    c"""', "}")

    assert writer.lines == ["if x:", '    s = """a', "  b  ", '    c"""']


def test_hash_inside_multiline_string():
    writer = write("s = '''# kept", "'''  # dropped", "t = 1")

    assert writer.lines == ["s = '''# kept", "'''", "t = 1"]


def test_assigned_data_fields_are_rebound():
    opts = Options()
    program = PythonBackend().load(assemble('<% title = title or "x" %>'), opts)

    assert 'if "title" in locals: title = locals["title"]' in program.source
    assert assigned_names(program.code) == ["title"]


def test_no_rebinding_when_locals_hidden():
    opts = Options(strict=True)
    program = PythonBackend().load(assemble("<% title = 1 %>"), opts)

    assert "in locals:" not in program.source
