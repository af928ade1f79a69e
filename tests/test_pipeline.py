from __future__ import annotations

from dataclasses import dataclass

from slightly.core.config import ProcessorConfig
from slightly.core.error import DocumentNotFoundError
from slightly.engine.pipeline import ExpansionPipeline


PAGE = """<html><body>
<script type="server/python">
    title = "Products"
    products = ["apple", "pear"]
    show_footer = len(products) > 1
</script>
<h1>${title}</h1>
<ul><li data-for-p="${products}">${p}</li></ul>
<p data-if="${show_footer}">${len(products)} items</p>
<p data-if="${not show_footer}">nothing</p>
</body></html>"""


def test_full_expansion():
    result = ExpansionPipeline().expand(PAGE)
    assert result.ok
    assert result.output == (
        "<html><body>\n"
        "\n"
        "<h1>Products</h1>\n"
        "<ul><li>apple</li><li>pear</li></ul>\n"
        "<p>2 items</p>\n"
        "\n"
        "</body></html>"
    )
    assert result.diagnostics == ()


def test_server_script_never_reaches_output():
    result = ExpansionPipeline().expand('<script type="server/python">secret = 1</script><p>${secret}</p>')
    assert result.output == "<p>1</p>"


def test_client_scripts_are_left_alone():
    html = '<script type="text/javascript">var a = 1;</script>'
    assert ExpansionPipeline().expand(html).output == html


def test_plain_document_is_unchanged_and_idempotent():
    html = '<!DOCTYPE html>\n<html><head><title>x</title></head><body><p class="a">hi</p></body></html>'
    pipeline = ExpansionPipeline()
    once = pipeline.expand(html).output
    assert once == html
    assert pipeline.expand(once).output == once


def test_expanded_output_is_stable():
    pipeline = ExpansionPipeline()
    once = pipeline.expand(PAGE).output
    assert pipeline.expand(once).output == once


def test_bytes_source_with_charset():
    result = ExpansionPipeline().expand("<p>${'é' * 2}</p>".encode("latin-1"), charset="latin-1")
    assert result.output == "<p>éé</p>"


def test_request_is_bound():
    @dataclass
    class FakeRequest:
        method: str = "POST"

    result = ExpansionPipeline().expand("<p>${request.method}</p>", request=FakeRequest())
    assert result.output == "<p>POST</p>"


def test_extra_bindings_and_functions():
    pipeline = ExpansionPipeline(functions={"shout": lambda s: s.upper() + "!"})
    result = pipeline.expand("<p>${shout(name)}</p>", bindings={"name": "hi"})
    assert result.output == "<p>HI!</p>"


def test_data_if_runs_before_data_for():
    html = "<ul data-if=\"${false}\"><li data-for-x=\"${[1, 2]}\">${x}</li></ul><i data-for-y=\"${[1]}\">${y}</i>"
    assert ExpansionPipeline().expand(html).output == "<i>1</i>"


def test_repeated_element_with_conditional_is_resolved_first():
    html = "<li data-if=\"${true}\" data-for-x=\"${['a', 'b']}\">${x}</li>"
    assert ExpansionPipeline().expand(html).output == "<li>a</li><li>b</li>"


def test_failed_expressions_are_collected_as_diagnostics():
    result = ExpansionPipeline().expand("<p>${missing}</p><p data-if=\"${also_missing}\">x</p>")
    assert result.ok
    assert result.output == "<p>${missing}</p>"
    assert len(result.diagnostics) == 2


def test_script_error_replaces_whole_output():
    html = '<p>before</p><script type="server/python">x = undefined_name</script><p>after</p>'
    result = ExpansionPipeline().expand(html)
    assert not result.ok
    assert result.error.kind == "Script Error"
    assert result.output.startswith("(Script Error) ")
    assert "undefined_name" in result.output
    assert "before" not in result.output


def test_unsupported_script_statement_is_script_error():
    result = ExpansionPipeline().expand('<script type="server/python">import os</script>')
    assert result.output.startswith("(Script Error) ")


def test_malformed_directive_is_general_error():
    result = ExpansionPipeline().expand('<p>keep?</p><li data-for-="${[1]}">x</li>')
    assert result.output.startswith("(General Error) ")
    assert "data-for-" in result.output
    assert "keep?" not in result.output


def test_undecodable_document_is_general_error():
    result = ExpansionPipeline().expand(b"<p>\xff</p>", charset="utf-8")
    assert result.output.startswith("(General Error) ")


def test_custom_markers_from_config():
    cfg = ProcessorConfig(script_type="server/tpl", if_attribute="x-if", for_prefix="x-each", request_name="req")
    html = (
        '<script type="server/tpl">n = 2</script>'
        '<b x-if="${n == 2}">ok</b>'
        '<i x-each-k="${range(n)}">${k}</i>'
        '<u data-if="${false}">untouched</u>'
    )
    result = ExpansionPipeline(cfg).expand(html, request="R")
    assert result.output == '<b>ok</b><i>0</i><i>1</i><u data-if="false">untouched</u>'


def test_requests_do_not_share_bindings():
    pipeline = ExpansionPipeline()
    first = pipeline.expand('<script type="server/python">leak = "x"</script><p>${leak}</p>')
    second = pipeline.expand("<p>${leak}</p>")
    assert first.output == "<p>x</p>"
    assert second.output == "<p>${leak}</p>"


class _Loaded:
    def __init__(self, content: bytes, charset: str = "utf-8") -> None:
        self.content = content
        self.charset = charset


class _DictLoader:
    def __init__(self, pages: dict[str, bytes]) -> None:
        self.pages = pages

    def load(self, path: str) -> _Loaded:
        if path not in self.pages:
            raise DocumentNotFoundError(path)
        return _Loaded(self.pages[path])


def test_render_through_loader():
    loader = _DictLoader({"index.html": b"<p>${1+1}</p>"})
    assert ExpansionPipeline().render(loader, "index.html").output == "<p>2</p>"


def test_render_missing_document():
    result = ExpansionPipeline().render(_DictLoader({}), "nope.html")
    assert result.error.kind == "Page Not Found"
    assert result.output.startswith("(Page Not Found) ")
    assert "nope.html" in result.output


def test_nested_repetition_leaves_no_directive_in_output():
    html = "<ul><li data-for-a=\"${['x','y']}\"><b data-for-b=\"${[1,2]}\">${a}${b}</b></li></ul>"
    result = ExpansionPipeline().expand(html)
    assert result.ok
    assert result.output == "<ul><li><b>x${b}</b></li><li><b>y${b}</b></li></ul>"
    assert "data-for-" not in result.output
