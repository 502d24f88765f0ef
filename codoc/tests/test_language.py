import pytest

from codoc.core.language import detect_language, is_code_file, lang_for


def test_extension_table_wins():
    assert detect_language("a.py", "function x() {}") == "python"
    assert detect_language("src/App.vue", "") == "javascript"
    assert detect_language("INDEX.PHP", "") == "php"
    assert lang_for("ts") == "typescript"
    assert lang_for(".unknown") == ""


@pytest.mark.parametrize(
    "sample, expected",
    [
        ("function x() { return 1; }", "javascript"),
        ("const f = function() => 1", "javascript"),
        ("def handler(event):\n    pass", "python"),
        ("<template><div/></template>", "vue"),
        ("package main\nfunc main() {}", "go"),
        ("public class Main", "java"),
        ("local x = 1\nend", "lua"),
        ("<?php echo 1;", "php"),
        ("let v = vec![1, 2];", "text"),
        ("", "text"),
    ],
)
def test_content_heuristics_for_unknown_extension(sample, expected):
    assert detect_language("lib.rs", sample) == expected


def test_heuristics_only_look_at_sample_prefix():
    sample = " " * 100 + "def f():"
    assert detect_language("x.swift", sample) == "text"


def test_is_code_file():
    assert is_code_file("src/main.rs")
    assert is_code_file("Tool.KT")
    assert not is_code_file("notes.txt")
    assert is_code_file("notes.txt", frozenset({".txt"}))
