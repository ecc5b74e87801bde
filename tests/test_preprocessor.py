import io

import pytest

from condpp.errors import (
    BadExpression, PreprocessorIOError, UnclosedIf, UnexpectedDirective,
)
from condpp.preprocessor import (
    ALREADY, ELSE, IF, INACTIVE_IF, INCLUDE_BOUNDARY, NOT_YET, NOW,
    Context, Preprocessor, is_active, line_ending, process, process_file, process_str,
)


@pytest.fixture
def ctx():
    context = Context()
    context.define("_TRUE", "1")
    context.define("_FALSE", "0")
    context.define("_OR", "||")
    context.define("_AND", "&&")
    return context


class TestConditionals:
    def test_macro_condition(self, ctx):
        assert process_str("#if _TRUE _OR _FALSE\nyes\n#else\nno\n#endif", ctx) == "yes\n"

    def test_false_block_dropped(self, ctx):
        assert process_str("#if 0\nstuff\n#endif", ctx) == ""

    def test_nested_else(self, ctx):
        text = "#if 1\n#if 0\n#if 1\nApple\n#endif\n#elseif 0\nBanana\n#else\nOrange\n#endif\n#endif"
        assert process_str(text, ctx) == "Orange\n"

    def test_elseif_chain(self, ctx):
        text = "#if _FALSE _AND _TRUE\nGoodbye\n#elseif _TRUE\nHello\n#else \nThe\n#endif\nWorld!"
        assert process_str(text, ctx) == "Hello\nWorld!"

    def test_only_first_true_branch(self, ctx):
        text = "#if 0\na\n#elseif 1\nb\n#elseif 1\nc\n#else\nd\n#endif\n"
        assert process_str(text, ctx) == "b\n"

    def test_else_after_taken_if(self, ctx):
        assert process_str("#if 1\na\n#elseif 1\nb\n#else\nc\n#endif\n", ctx) == "a\n"

    def test_all_false_falls_to_else(self, ctx):
        assert process_str("#if 0\na\n#elseif 0\nb\n#else\nc\n#endif\n", ctx) == "c\n"

    def test_dead_conditions_not_evaluated(self, ctx):
        # malformed conditions in dead branches must not raise
        text = "#if 0\n#if garbage +\nx\n#elseif ???\ny\n#else\nz\n#endif\n#endif\nend\n"
        assert process_str(text, ctx) == "end\n"

    def test_elseif_after_taken_branch_not_evaluated(self, ctx):
        assert process_str("#if 1\na\n#elseif what\nb\n#endif\n", ctx) == "a\n"

    def test_inactive_if_inside_false_branch(self, ctx):
        text = "#if 0\n#if 1\nA\n#else\nB\n#endif\nC\n#else\nD\n#endif\n"
        assert process_str(text, ctx) == "D\n"

    def test_directive_without_trailing_newline(self, ctx):
        assert process_str("#if 1\nx\n#endif", ctx) == "x\n"

    def test_comment_on_directive(self, ctx):
        text = "#if 1 // always\nx\n#else // never\ny\n#endif // done\n"
        assert process_str(text, ctx) == "x\n"

    def test_commented_out_directive_is_text(self, ctx):
        assert process_str("// #if 0\nx\n", ctx) == "// #if 0\nx\n"

    def test_indented_directives(self, ctx):
        assert process_str("  #if 0\nx\n  #else\ny\n\t#endif\n", ctx) == "y\n"

    def test_unknown_hash_lines_pass_through(self, ctx):
        assert process_str("#version 140", ctx) == "#version 140"
        assert process_str("#ifdef X\n#if\n", ctx) == "#ifdef X\n#if\n"


class TestTextLines:
    def test_substitution_on_text(self, ctx):
        assert process_str("a _TRUE b\n", ctx) == "a 1 b\n"

    def test_lines_byte_identical(self, ctx):
        text = "  keep   spacing  \r\nsecond line // with comment\nlast"
        assert process_str(text, ctx) == text

    def test_strip_comments(self):
        context = Context(strip_comments=True)
        assert process_str("code // note\r\nplain\n", context) == "code\r\nplain\n"

    def test_empty_input(self, ctx):
        assert process_str("", ctx) == ""

    def test_undefine(self, ctx):
        ctx.undefine("_TRUE")
        ctx.undefine("NEVER_DEFINED")
        assert process_str("_TRUE _FALSE\n", ctx) == "_TRUE 0\n"
        with pytest.raises(BadExpression):
            process_str("#if _TRUE\n#endif\n", ctx)

    def test_default_context(self):
        assert process_str("#if 1 || 0\nok\n#endif\n") == "ok\n"


class TestErrors:
    def test_extra_endif(self, ctx):
        with pytest.raises(UnexpectedDirective, match="unexpected #endif") as info:
            process_str("#if 1\nstuff\n#endif\n#endif", ctx)
        assert info.value.line == 4
        assert info.value.source == "<string>"

    def test_elseif_after_else(self, ctx):
        with pytest.raises(UnexpectedDirective, match="unexpected #elseif"):
            process_str("#if 1\nabc\n#else\ndef\n#elseif 1\nghi\n#endif", ctx)

    def test_else_after_else(self, ctx):
        with pytest.raises(UnexpectedDirective, match="unexpected #else"):
            process_str("#if 0\n#else\n#else\n#endif\n", ctx)

    def test_stray_else_and_elseif(self, ctx):
        with pytest.raises(UnexpectedDirective):
            process_str("#else\n", ctx)
        with pytest.raises(UnexpectedDirective):
            process_str("#elseif 1\n", ctx)

    def test_unclosed_if(self, ctx):
        with pytest.raises(UnclosedIf, match="couldn't find matching #endif") as info:
            process_str("#if 1\nx\n", ctx)
        assert info.value.line == 2

    def test_unclosed_inactive_if(self, ctx):
        with pytest.raises(UnclosedIf):
            process_str("#if 0\n#if 1\n#endif\n", ctx)

    def test_bad_expression_located(self, ctx):
        with pytest.raises(BadExpression) as info:
            process_str("a\n#if 1 + 1\n#endif\n", ctx)
        assert info.value.line == 2
        assert str(info.value) == "<string>:2: unexpected symbol"

    def test_undefined_macro_is_bad_expression(self, ctx):
        with pytest.raises(BadExpression):
            process_str("#if UNDEFINED\n#endif\n", ctx)

    def test_read_error(self):
        def lines():
            yield "ok\n"
            raise OSError("disk on fire")

        with pytest.raises(PreprocessorIOError, match="disk on fire") as info:
            process(lines(), source="broken")
        assert info.value.line == 2


class TestStateMachine:
    def test_is_active(self):
        assert is_active(None)
        assert is_active({"kind": INCLUDE_BOUNDARY})
        assert is_active({"kind": IF, "branch": NOW})
        assert not is_active({"kind": IF, "branch": NOT_YET})
        assert not is_active({"kind": IF, "branch": ALREADY})
        assert is_active({"kind": ELSE, "active": True})
        assert not is_active({"kind": ELSE, "active": False})
        assert not is_active({"kind": INACTIVE_IF})

    def test_stack_transitions(self, ctx):
        pp = Preprocessor(ctx)
        pp.handle_line("#if 0\n")
        assert pp.stack == [{"kind": IF, "branch": NOT_YET}]
        pp.handle_line("#elseif 1\n")
        assert pp.stack == [{"kind": IF, "branch": NOW}]
        pp.handle_line("#if 1\n")
        pp.handle_line("#endif\n")
        pp.handle_line("#elseif 1\n")
        assert pp.stack == [{"kind": IF, "branch": ALREADY}]
        pp.handle_line("#else\n")
        assert pp.stack == [{"kind": ELSE, "active": False}]
        pp.handle_line("#if 1\n")
        assert pp.stack[-1] == {"kind": INACTIVE_IF}
        pp.handle_line("#else\n")
        pp.handle_line("#elseif 1\n")
        assert pp.stack[-1] == {"kind": INACTIVE_IF}

    def test_run_resets_state(self, ctx):
        pp = Preprocessor(ctx)
        with pytest.raises(UnclosedIf):
            pp.run(io.StringIO("#if 1\n"))
        assert pp.run(io.StringIO("x\n")) == "x\n"

    def test_line_ending(self):
        assert line_ending("a\r\n") == "\r\n"
        assert line_ending("a\n") == "\n"
        assert line_ending("a") == ""

    def test_list_of_lines(self, ctx):
        assert process(["#if _TRUE\n", "a\n", "#endif\n"], ctx) == "a\n"

    def test_bytes_lines(self, ctx):
        assert process(io.BytesIO(b"#if 0\nno\n#else\nyes\n#endif\n"), ctx) == "yes\n"


class TestProcessFile:
    def test_keeps_crlf(self, tmp_path, ctx):
        path = tmp_path / "input.txt"
        path.write_bytes(b"#if _TRUE\r\nline\r\n#endif\r\n")
        assert process_file(path, ctx) == "line\r\n"

    def test_lone_cr_does_not_split_lines(self, tmp_path, ctx):
        path = tmp_path / "input.txt"
        path.write_bytes(b"#if 1\rfoo\n#endif\n")
        with pytest.raises(BadExpression):
            process_file(path, ctx)
        path.write_bytes(b"a\rb\n")
        assert process_file(path, ctx) == "a\rb\n"

    def test_error_names_file(self, tmp_path):
        path = tmp_path / "input.txt"
        path.write_text("#if 1\n")
        with pytest.raises(UnclosedIf) as info:
            process_file(path)
        assert info.value.source == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(PreprocessorIOError):
            process_file(tmp_path / "nope.txt")
