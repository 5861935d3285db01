"""
Shared pytest fixtures for all workerpack tests.

Provides helpers that lay out worker projects (entry script, page
directories, favicon, word list) on disk, and a fake Node runner so that no
test needs esbuild, terser or js-confuser installed.
"""

import json
from pathlib import Path

import pytest

from workerpack.errors import ToolError
from workerpack.models import BuildConfig

# ---------------------------------------------------------------------------
# Sample content
# ---------------------------------------------------------------------------

PAGE_TEMPLATE = (
    "<!DOCTYPE html>\n"
    "<html>\n"
    "  <head>\n"
    "    <title>Panel</title>\n"
    "    __STYLE__\n"
    "  </head>\n"
    "  <body>\n"
    "    <div id=\"app\" class=\"main\">Hello</div>\n"
    "    <script>__SCRIPT__</script>\n"
    "  </body>\n"
    "</html>\n"
)
PAGE_STYLE = "body { color: red; }\n"
PAGE_SCRIPT = "var greeting = 'hi';\n"

ICON_BYTES = b"\x00\x00\x01\x00icon"


# ---------------------------------------------------------------------------
# Helpers: create project files with known content
# ---------------------------------------------------------------------------

def make_page(
    asset_dir: Path,
    name: str,
    html: str = PAGE_TEMPLATE,
    css: str = PAGE_STYLE,
    js: str = PAGE_SCRIPT,
) -> Path:
    """Create ``<asset_dir>/<name>/{index.html,style.css,script.js}``."""
    page_dir = asset_dir / name
    page_dir.mkdir(parents=True, exist_ok=True)
    (page_dir / "index.html").write_text(html, encoding="utf-8")
    (page_dir / "style.css").write_text(css, encoding="utf-8")
    (page_dir / "script.js").write_text(js, encoding="utf-8")
    return page_dir


def make_project(root: Path, pages: list[str] = ("panel",), words: list[str] = ("secret",)) -> Path:
    """Create a minimal worker project under *root*."""
    (root / "src" / "assets").mkdir(parents=True, exist_ok=True)
    (root / "src" / "worker.js").write_text(
        "export default { fetch() { console.log('hit'); return new Response(__PANEL_HTML_CONTENT__); } };\n",
        encoding="utf-8",
    )
    (root / "src" / "assets" / "favicon.ico").write_bytes(ICON_BYTES)
    for name in pages:
        make_page(root / "src" / "assets", name)
    (root / "sensitive_words_auto.txt").write_text("\n".join(words) + "\n", encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# Fake Node runner
# ---------------------------------------------------------------------------

class FakeRunner:
    """
    Stand-in for NodeRunner.

    Records every call and answers from *outputs* (tool name -> text, or a
    callable taking the payload). Tools listed in *failures* raise ToolError.
    """

    def __init__(self, outputs=None, failures=()):
        self.outputs = outputs or {}
        self.failures = set(failures)
        self.calls: list[tuple[str, str, dict]] = []

    def run(self, tool, script, payload):
        # Payloads must survive the trip through JSON.
        self.calls.append((tool, script, json.loads(json.dumps(payload))))
        if tool in self.failures:
            raise ToolError(tool, "boom", returncode=1, stderr="boom")
        output = self.outputs.get(tool)
        if callable(output):
            return output(payload)
        if output is not None:
            return output
        return payload.get("code", "")

    def payload_for(self, tool):
        for name, _script, payload in self.calls:
            if name == tool:
                return payload
        raise AssertionError(f"{tool} was not run")


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def project(tmp_path):
    """A project with a single ``panel`` page."""
    return make_project(tmp_path / "project")


@pytest.fixture
def build_config(project):
    """BuildConfig rooted at the ``project`` fixture."""
    return BuildConfig(project_root=project)


@pytest.fixture
def fake_runner():
    """FakeRunner returning a small bundle for esbuild."""
    bundle = (
        'var __name = (t, v) => t;\n'
        'var handler = __name(function() {  console.log("hit");  return "ok"; }, "handler");\n'
        'export { handler as default };\n'
    )
    return FakeRunner(outputs={"esbuild": bundle})
