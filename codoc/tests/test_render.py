import json

from codoc.core.models import DocItem
from codoc.core.render import (
    EXCERPT_MARKER,
    TrackerLinks,
    dedent_code,
    render_item,
    render_json,
    render_markdown,
)


def _item(title="T", content="", req="REQ-1", domain=None, **kw):
    return DocItem(file="src/a.ts", line=3, title=title, content=content, req=req, domain=domain or [], **kw)


def test_fix_only_bug_id_gets_defect_header():
    md = render_markdown({"BUG-1": {"fix": [_item(req=["BUG-1"])]}})
    assert md.startswith("## Defect Fix [BUG-1](https://devops.aliyun.com/projex/bug/BUG-1)")
    assert "## Requirement" not in md
    assert "### 🐛 Bug Fix" in md


def test_requirement_header_otherwise():
    md = render_markdown({"REQ-1": {"summary": [_item()]}})
    assert md.startswith("## Requirement [REQ-1](https://devops.aliyun.com/projex/req/REQ-1)")

    # A fix under a non-tracker key is still a requirement section.
    md = render_markdown({"???": {"fix": [_item(req="???")]}})
    assert md.startswith("## Requirement [???]")


def test_link_templates_are_configurable():
    links = TrackerLinks(req_url="https://tracker.test/r/{id}", bug_url="https://tracker.test/b/{id}")
    md = render_markdown({"REQ-1": {"summary": [_item(req=["REQ-1", "BUG-2"])]}}, links)
    assert "[REQ-1](https://tracker.test/r/REQ-1)" in md
    assert "[BUG-2](https://tracker.test/b/BUG-2)" in md


def test_priority_sections_come_first_and_sn_is_per_section():
    result = {
        "REQ-1": {
            "comment": [_item(title="c1")],
            "feature": [_item(title="f1"), _item(title="f2")],
            "summary": [_item(title="s1")],
            "decision": [_item(title="d1")],
        }
    }
    md = render_markdown(result)
    order = [md.index(h) for h in ("### 📝 Summary", "### 🔍 Decision", "### ✨ Feature", "### 💬 Comment")]
    assert order == sorted(order)
    assert "#### 1. f1" in md
    assert "#### 2. f2" in md
    assert "#### 1. c1" in md
    assert [i.sn for i in result["REQ-1"]["feature"]] == [1, 2]


def test_related_and_domain_lines():
    item = _item(req=["REQ-1", "BUG-2", "misc"], domain=["cart", "ui"])
    lines = render_item(item, "REQ-1", TrackerLinks())
    assert "> `Related`: [BUG-2](https://devops.aliyun.com/projex/bug/BUG-2), misc" in lines
    assert "> `Domain`: cart, ui" in lines


def test_fields_render_in_priority_then_extraction_order():
    content = "- how: h\n- custom: c\n- req: REQ-1\n- domain: x\n- why: w"
    md = "\n".join(render_item(_item(content=content), "REQ-1", TrackerLinks()))
    assert md.index("- **Why**: w") < md.index("- **How**: h") < md.index("- **custom**: c")
    assert "**req**" not in md
    assert "**domain**" not in md
    assert "- **Location**: `src/a.ts:3`" in md


def test_multiline_field_is_reindented():
    content = "- why: first\n      - nested\n  second"
    lines = render_item(_item(content=content), "REQ-1", TrackerLinks())
    start = lines.index("- **Why**: first")
    assert lines[start + 1:start + 3] == ["  - nested", "  second"]


def test_php_excerpt_is_dedented_and_bracketed():
    item = _item(check_code="    $a = 1;\n\n    echo $a;", check_code_language="php")
    md = "\n".join(render_item(item, "REQ-1", TrackerLinks()))
    expected = "\n".join([
        "```php",
        "<?php",
        EXCERPT_MARKER,
        "$a = 1;",
        "",
        "echo $a;",
        "",
        EXCERPT_MARKER,
        "```",
    ])
    assert expected in md


def test_item_without_excerpt_has_no_fence():
    md = "\n".join(render_item(_item(content=""), "REQ-1", TrackerLinks()))
    assert "```" not in md
    assert md.rstrip().endswith("---")


def test_dedent_is_idempotent():
    code = "        if (x) {\n            run();\n   \n        }"
    once = dedent_code(code)
    assert once == ["if (x) {", "    run();", "", "}"]
    assert dedent_code("\n".join(once)) == once


def test_render_json():
    data = json.loads(render_json({"REQ-1": {"summary": [_item(title="Café")]}}))
    assert data["REQ-1"]["summary"][0]["title"] == "Café"
    assert "check_code" not in data["REQ-1"]["summary"][0]
    assert "Café" in render_json({"REQ-1": {"summary": [_item(title="Café")]}})
