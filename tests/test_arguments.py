import pytest

from gwttester.arguments import (
    BOOLEAN_FLAGS,
    OPTIONAL_STRING_FLAGS,
    compile_arguments,
    prepare_output_directory,
    quote,
    unquote,
)
from gwttester.errors import HarnessError
from gwttester.options import RunnerOptions

OUT = "target/www-test"


def tokens(options: RunnerOptions) -> list:
    return compile_arguments(options, OUT).split(" ")


def test_default_arguments():
    assert compile_arguments(RunnerOptions(), OUT) == (
        "-war target/www-test -logLevel INFO -devMode -nocheckAssertions"
        " -XclusterFunctions -XcheckCasts -XclassMetadata -XcodeSplitting"
        " -nodraftCompile -XinlineLiteralParameters -XoptimizeDataflow"
        " -XordinalizeEnums -XremoveDuplicateFunctions -noshowUi"
        " -testBeginTimeout 1 -testMethodTimeout 5 -Xtries 1 -noincremental"
        " -precompile simple -XjsInteropMode NONE -runStyle Manual:1"
    )


def test_compile_is_deterministic():
    first = RunnerOptions(mode="htmlunit", user_agents="ie8,safari", namespace="PACKAGE")
    second = RunnerOptions(mode="htmlunit", user_agents="ie8,safari", namespace="PACKAGE")
    assert compile_arguments(first, OUT) == compile_arguments(first, OUT)
    assert compile_arguments(first, OUT) == compile_arguments(second, OUT)


@pytest.mark.parametrize("name,enabled,disabled", BOOLEAN_FLAGS)
@pytest.mark.parametrize("value", [True, False])
def test_boolean_pairs_emit_exactly_one_token(name, enabled, disabled, value):
    result = tokens(RunnerOptions(**{name: value}))
    expected, unexpected = (enabled, disabled) if value else (disabled, enabled)
    assert result.count(expected) == 1
    assert unexpected not in result


@pytest.mark.parametrize("field", ["web_mode", "production_mode"])
def test_production_mode_disables_dev_mode(field):
    result = tokens(RunnerOptions(**{field: True}))
    assert "-nodevMode" in result
    assert "-devMode" not in result


def test_incremental_pair():
    assert "-incremental" in tokens(RunnerOptions(incremental=True))
    assert "-noincremental" in tokens(RunnerOptions())


@pytest.mark.parametrize("name,flag", OPTIONAL_STRING_FLAGS + [("source_level", "-sourceLevel")])
@pytest.mark.parametrize("blank", [None, "", "   ", "\t"])
def test_blank_strings_are_omitted(name, flag, blank):
    assert flag not in tokens(RunnerOptions(**{name: blank}))


@pytest.mark.parametrize("name,flag", OPTIONAL_STRING_FLAGS + [("source_level", "-sourceLevel")])
def test_non_blank_strings_are_emitted(name, flag):
    result = tokens(RunnerOptions(**{name: "value"}))
    index = result.index(flag)
    assert result[index + 1] == "value"


def test_user_agents_and_batch():
    result = tokens(RunnerOptions(user_agents="ie8,gecko1_8", batch="module"))
    assert result[-4:] == ["-userAgents", "ie8,gecko1_8", "-batch", "module"]
    assert "-userAgents" not in tokens(RunnerOptions())
    assert "-batch" not in tokens(RunnerOptions(batch=" "))


def test_quoted_value_round_trips():
    value = 'ie8, "safari"\tgecko'
    compiled = compile_arguments(RunnerOptions(user_agents=value), OUT)
    token = compiled.split("-userAgents ", 1)[1]
    assert token.startswith('"') and token.endswith('"')
    assert unquote(token) == value


@pytest.mark.parametrize(
    "value",
    ["plain", "with space", 'say "hi"', "tab\there", "line\nbreak\r\n", "C:\\Program Files\\x", ""],
)
def test_unquote_inverts_quote(value):
    assert unquote(quote(value)) == value


def test_quote_leaves_simple_values_alone():
    assert quote("FF17,IE9") == "FF17,IE9"
    assert quote("a b") == '"a\\ b"'
    assert quote('a"b') == '"a\\"b"'


def test_output_directory_is_quoted():
    compiled = compile_arguments(RunnerOptions(), "build/www test")
    assert compiled.startswith('-war "build/www\\ test" ')


def test_optimization_level():
    assert "-optimize" not in tokens(RunnerOptions())
    result = compile_arguments(RunnerOptions(optimization_level=0), OUT)
    assert " -optimize 0 " in result
    result = compile_arguments(RunnerOptions(optimization_level=9), OUT)
    assert " -optimize 9 " in result


def test_numeric_options_always_emitted():
    result = compile_arguments(
        RunnerOptions(test_begin_timeout=2, test_method_timeout=10, tries=3), OUT
    )
    assert "-testBeginTimeout 2 -testMethodTimeout 10 -Xtries 3" in result


def test_manual_run_style():
    assert compile_arguments(RunnerOptions(mode="Manual"), OUT).endswith("-runStyle Manual:1")


def test_htmlunit_run_style_embeds_browsers():
    compiled = compile_arguments(RunnerOptions(mode="htmlunit", htmlunit="FF17,IE9"), OUT)
    assert "-runStyle HtmlUnit:FF17,IE9" in compiled


def test_selenium_run_style():
    compiled = compile_arguments(
        RunnerOptions(mode="SELENIUM", selenium="localhost:4444/*firefox"), OUT
    )
    assert "-runStyle Selenium:localhost:4444/*firefox" in compiled


def test_custom_run_style_passed_verbatim():
    compiled = compile_arguments(RunnerOptions(mode="RemoteWeb:rmi://host/FF"), OUT)
    assert compiled.endswith("-runStyle RemoteWeb:rmi://host/FF")


@pytest.mark.parametrize("mode", ["", "  "])
def test_blank_mode_has_no_run_style(mode):
    assert "-runStyle" not in tokens(RunnerOptions(mode=mode))


def test_prepare_relative_output_directory(tmp_path):
    path = prepare_output_directory("target/www-test", tmp_path)
    assert path == tmp_path / "target" / "www-test"
    assert path.is_dir()


def test_prepare_absolute_output_directory(tmp_path):
    target = tmp_path / "elsewhere" / "out"
    assert prepare_output_directory(str(target), tmp_path / "project") == target
    assert target.is_dir()
    assert not (tmp_path / "project").exists()


def test_prepare_output_directory_failure(tmp_path):
    (tmp_path / "file").write_text("", encoding="utf-8")
    with pytest.raises(HarnessError) as excinfo:
        prepare_output_directory("file/out", tmp_path)
    assert isinstance(excinfo.value.__cause__, OSError)
