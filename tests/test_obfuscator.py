"""
Tests for workerpack.obfuscator: js-confuser options and driver script.
"""

import json
import re

import pytest

from workerpack.errors import ToolError
from workerpack.models import CipherKeys, ObfuscatorOptions
from workerpack.obfuscator import count_sensitive_literals, obfuscate, render_driver
from tests.conftest import FakeRunner

KEYS = CipherKeys(base=128, shift=21, xor=66)


def _embedded_options(script: str) -> dict:
    match = re.search(r"const options = (\{.*?\});\n", script, re.DOTALL)
    assert match, "options literal not found"
    return json.loads(match.group(1))


# ===================================================================
# ObfuscatorOptions
# ===================================================================

class TestObfuscatorOptions:
    """Tests for the js-confuser option record."""

    def test_camel_case_keys(self):
        options = ObfuscatorOptions().to_js()
        assert options["target"] == "browser"
        assert options["renameVariables"] is True
        assert options["renameGlobals"] is True
        assert options["identifierGenerator"] == "mangled"
        assert options["hexadecimalNumbers"] is True
        assert options["controlFlowFlattening"] is False
        assert options["minify"] is False
        assert options["lock"] == {
            "antiDebug": False,
            "integrity": False,
            "selfDefending": False,
            "tamperProtection": False,
        }

    def test_populate_by_snake_or_camel_name(self):
        assert ObfuscatorOptions(dead_code=True).to_js()["deadCode"] is True
        assert ObfuscatorOptions.model_validate({"deadCode": True}).dead_code is True


# ===================================================================
# render_driver
# ===================================================================

class TestRenderDriver:
    """Tests for the js-confuser driver script."""

    def test_options_embedded_as_json(self):
        script = render_driver(ObfuscatorOptions(shuffle=True), KEYS)
        options = _embedded_options(script)
        assert options["shuffle"] is True
        assert options["astScrambler"] is True

    def test_string_concealing_uses_word_list(self):
        script = render_driver(ObfuscatorOptions(), KEYS)
        assert "options.stringConcealing" in script
        assert "sensitiveWords.some(word => lowered.includes(word))" in script
        assert "str.toLowerCase()" in script

    def test_custom_encoding_embeds_keys(self):
        script = render_driver(ObfuscatorOptions(), KEYS)
        assert "options.customStringEncodings" in script
        # Decoder travels as a JSON string literal.
        assert "(code - 21 + 128) % 128" in script
        assert "(code + 21) % 128" in script
        assert "code ^ 66" in script
        assert "{fnName}" in script

    def test_handles_both_result_shapes(self):
        script = render_driver(ObfuscatorOptions(), KEYS)
        assert "typeof result === 'string' ? result : result.code" in script


# ===================================================================
# obfuscate
# ===================================================================

class TestObfuscate:
    """Tests for obfuscate() with a fake runner."""

    def test_payload(self):
        runner = FakeRunner(outputs={"js-confuser": "obf"})
        result = obfuscate("var a = 1;", ["secret", "token"], KEYS, runner)
        assert result == "obf"
        assert runner.payload_for("js-confuser") == {
            "code": "var a = 1;",
            "words": ["secret", "token"],
        }

    def test_logs_concealed_literal_count(self, caplog):
        runner = FakeRunner()
        code = 'var a = "API_SECRET"; var b = "hello"; var c = `token ok`;'
        with caplog.at_level("INFO", logger="workerpack.obfuscator"):
            obfuscate(code, ["secret", "token"], KEYS, runner)
        assert "2 literal(s) concealed, 2 sensitive word(s)" in caplog.text

    def test_tool_failure_propagates(self):
        runner = FakeRunner(failures=["js-confuser"])
        with pytest.raises(ToolError, match="js-confuser"):
            obfuscate("x", [], KEYS, runner)


# ===================================================================
# count_sensitive_literals
# ===================================================================

class TestCountSensitiveLiterals:
    """Tests for count_sensitive_literals()."""

    def test_counts_matching_strings_and_templates(self):
        code = 'const k = "Secret-Key", n = \'name\', t = `my token`;'
        assert count_sensitive_literals(code, ["secret", "token"]) == 2

    def test_ignores_identifiers_and_comments(self):
        code = "var secret = 1; // secret\n/* token */ f(secret);"
        assert count_sensitive_literals(code, ["secret", "token"]) == 0

    def test_empty_word_list(self):
        assert count_sensitive_literals('"secret"', []) == 0
