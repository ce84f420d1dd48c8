"""
Site composer - assemble a SiteArtifact into one self-contained HTML document.

The same document feeds the sandboxed preview and the deployed index.html.
"""
from typing import Dict

from site_engine.services.site_artifact import SiteArtifact

_HEAD = '<!DOCTYPE html>\n<html lang="en">\n  <head>\n    <style>'
_BODY = '</style>\n  </head>\n  <body>\n    '
_SCRIPT = '\n    <script>'
_TAIL = '</script>\n  </body>\n</html>\n'


def compose(artifact: SiteArtifact) -> str:
    """Inline css and js around the html body"""
    return f"{_HEAD}{artifact.css}{_BODY}{artifact.html}{_SCRIPT}{artifact.js}{_TAIL}"


def decompose(document: str) -> SiteArtifact:
    """
    Recover the artifact from a document produced by ``compose``.

    css ends at the first head/body boundary and js starts after the last
    script opener, so the split is exact unless the css itself contains the
    head/body boundary or the js contains the script opener.
    """
    if not document.startswith(_HEAD) or not document.endswith(_TAIL):
        raise ValueError("Document was not produced by compose()")

    inner = document[len(_HEAD):len(document) - len(_TAIL)]
    body_at = inner.find(_BODY)
    script_at = inner.rfind(_SCRIPT)
    if body_at == -1 or script_at == -1 or script_at < body_at + len(_BODY):
        raise ValueError("Document is missing the body or script section")

    return SiteArtifact(
        css=inner[:body_at],
        html=inner[body_at + len(_BODY):script_at],
        js=inner[script_at + len(_SCRIPT):]
    )


def build_deploy_files(artifact: SiteArtifact) -> Dict[str, str]:
    """Files shipped to the host: the composed page plus the raw css and js"""
    return {
        "index.html": compose(artifact),
        "style.css": artifact.css,
        "script.js": artifact.js,
    }
