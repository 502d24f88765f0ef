from codoc.core.blocks import build_recognizers, code_sample, parse_content, relative_path
from codoc.core.tags import PLACEHOLDER_ID


SUMMARY_EXAMPLE = (
    "// @summary(CLOUD-123) Cart cache\n"
    "//  - why: offline access\n"
    "//  - domain: cart,storage\n"
    "// @endSummary\n"
)


def test_identifiable_block_example():
    result = parse_content(SUMMARY_EXAMPLE, file_path="/proj/src/cart.ts", project_root="/proj")

    assert list(result) == ["CLOUD-123"]
    assert list(result["CLOUD-123"]) == ["summary"]
    item = result["CLOUD-123"]["summary"][0]
    assert item.title == "Cart cache"
    assert item.req == ["CLOUD-123"]
    assert item.domain == ["cart", "storage"]
    assert "why: offline access" in item.content
    assert "domain: cart,storage" in item.content
    assert item.file == "src/cart.ts"
    assert item.line == 1
    # Nothing follows the end tag.
    assert item.check_code is None


def test_standard_block_without_req_uses_placeholder():
    text = (
        "const a = 1;\n"
        "\n"
        "// @decision Use REST\n"
        "// - why: simpler\n"
        "// @endDecision\n"
        "fetch(url);\n"
    )
    result = parse_content(text, file_path="/p/a.ts", project_root="/p")

    item = result[PLACEHOLDER_ID]["decision"][0]
    assert item.line == 3
    assert item.title == "Use REST"
    assert item.req == PLACEHOLDER_ID
    assert item.check_code.startswith("// @decision Use REST")
    assert item.check_code.endswith("fetch(url);")
    assert item.check_code_language == "typescript"


def test_star_prefixed_block_with_req_field():
    text = (
        "/**\n"
        " * @feature Offline mode\n"
        " * - req: APP-7\n"
        " * @endFeature\n"
        " */\n"
    )
    result = parse_content(text)
    item = result["APP-7"]["feature"][0]
    assert item.title == "Offline mode"
    assert item.req == ["APP-7"]
    assert item.content == "- req: APP-7"
    assert item.line == 2


def test_req_field_overrides_parenthetical_id():
    text = "// @fix(BUG-9) Null crash\n// - req: REQ-1, BUG-9\n// @endFix\n"
    result = parse_content(text)
    assert list(result) == ["REQ-1"]
    assert result["REQ-1"]["fix"][0].req == ["REQ-1", "BUG-9"]


def test_identifiable_blank_title_falls_back_to_content():
    text = "// @summary(S-1)\n// - why: keeps things fast\n// @endSummary\n"
    item = parse_content(text)["S-1"]["summary"][0]
    assert item.title == "why: keeps things fast"


def test_identifiable_empty_parenthetical_uses_placeholder():
    text = "// @summary() Untracked\n// @endSummary\n"
    result = parse_content(text)
    assert list(result) == [PLACEHOLDER_ID]
    assert result[PLACEHOLDER_ID]["summary"][0].req == PLACEHOLDER_ID


def test_standard_title_may_be_empty():
    text = "// @notice\n// - notice: read this\n// @endNotice\n"
    item = parse_content(text)[PLACEHOLDER_ID]["notice"][0]
    assert item.title == ""


def test_end_tag_accepts_raw_and_capitalized_forms():
    text = (
        "// @testFocus First\n"
        "// @endtestFocus\n"
        "// @testFocus Second\n"
        "// @endTestFocus\n"
    )
    items = parse_content(text)[PLACEHOLDER_ID]["testFocus"]
    assert [i.title for i in items] == ["First", "Second"]


def test_unterminated_block_does_not_hide_others():
    text = (
        "// @feature Never closed\n"
        "// - why: x\n"
        "\n"
        "// @decision Kept\n"
        "// @endDecision\n"
    )
    result = parse_content(text)
    assert list(result[PLACEHOLDER_ID]) == ["decision"]
    assert result[PLACEHOLDER_ID]["decision"][0].title == "Kept"


def test_start_tag_must_open_a_line():
    text = "const x = 1; // @decision Inline\n// @endDecision\n"
    assert parse_content(text) == {}


def test_first_end_tag_closes_block():
    text = (
        "// @comment Outer\n"
        "// @comment Inner\n"
        "// @endComment\n"
        "// @endComment\n"
    )
    items = parse_content(text)[PLACEHOLDER_ID]["comment"]
    assert len(items) == 1
    assert items[0].title == "Outer"


def test_crlf_line_endings():
    text = "x\r\n// @decision Windows\r\n// @endDecision\r\n"
    item = parse_content(text)[PLACEHOLDER_ID]["decision"][0]
    assert item.title == "Windows"
    assert item.line == 2


def test_recognizers_are_reusable_across_files():
    recognizers = build_recognizers()
    first = parse_content(SUMMARY_EXAMPLE, recognizers=recognizers)
    second = parse_content(SUMMARY_EXAMPLE, recognizers=recognizers)
    assert [i.to_dict() for i in first["CLOUD-123"]["summary"]] == [
        i.to_dict() for i in second["CLOUD-123"]["summary"]
    ]


def test_code_sample_skips_blank_lines_without_spending_budget():
    lines = ["// @endX", "a", "", "b", "   ", "c"]
    assert code_sample(lines, 1, 2) == "a\nb"
    assert code_sample(lines, 1, 3) == "a\nb\nc"
    assert code_sample(lines, 6, 3) == ""


def test_excerpt_can_be_disabled():
    text = "// @decision D\n// @endDecision\nrun();\n"
    item = parse_content(text, excerpt_lines=0)[PLACEHOLDER_ID]["decision"][0]
    assert item.check_code is None
    assert item.check_code_language is None


def test_excerpt_is_limited():
    body = "".join(f"line{n}();\n" for n in range(30))
    text = "// @decision D\n// @endDecision\n" + body
    item = parse_content(text, file_path="x.js")[PLACEHOLDER_ID]["decision"][0]
    assert item.check_code.count("\n") == 1 + 15
    assert item.check_code.endswith("line14();")


def test_relative_path():
    assert relative_path("/proj/a/b.ts", "/proj") == "a/b.ts"
    assert relative_path("/proj/a/b.ts", None) == "/proj/a/b.ts"
