import re
from pathlib import Path
from typing import Union

BOOTSTRAP_PLUGIN_DIR = ("plugins", "org.chromium.bootstrap")
BOOTSTRAP_PAGES = ("chromeapp.html", "chromebgpage.html")
CSP_META_PATTERN = re.compile(r"<meta[^>]*Content-Security[^>]*>")


def build_csp_tag(csp_content: str) -> str:
    escaped = csp_content.replace("&", "&amp;").replace('"', "&quot;")
    return f'<meta http-equiv="Content-Security-Policy" content="{escaped}">'


def replace_csp_tag(html: str, csp_tag: str) -> str:
    # csp_tag is inserted verbatim, escapes included.
    return CSP_META_PATTERN.sub(lambda _match: csp_tag, html, count=1)


def inject_csp(html_path: Union[str, Path], csp_tag: str) -> bool:
    with open(html_path, "r", encoding="utf-8", newline="") as f:
        html = f.read()

    patched = replace_csp_tag(html, csp_tag)
    if not CSP_META_PATTERN.search(html):
        print(f"Warning: no Content-Security-Policy meta tag in {html_path}, left unchanged")

    with open(html_path, "w", encoding="utf-8", newline="") as f:
        f.write(patched)
    return patched != html


def bootstrap_page_paths(asset_root: Union[str, Path]) -> list[Path]:
    plugin_dir = Path(asset_root).joinpath(*BOOTSTRAP_PLUGIN_DIR)
    return [plugin_dir / page for page in BOOTSTRAP_PAGES]


def inject_bootstrap_csp(asset_root: Union[str, Path], csp_content: str) -> str:
    csp_tag = build_csp_tag(csp_content)
    for html_path in bootstrap_page_paths(asset_root):
        inject_csp(html_path, csp_tag)
    return csp_tag
