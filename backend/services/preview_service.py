"""
Preview Service

Builds the standalone HTML document used to preview an artifact.

Every document is served with a `Content-Security-Policy: sandbox ...`
header. Without `allow-same-origin` the browser gives the document an opaque
origin, so artifact code can run (where the strategy allows scripts) but
cannot read the host application's cookies, localStorage or bearer token,
and cannot reach into the parent page.

Trust boundary: HTML, React and SVG code is rendered as written. SVG markup
is injected unescaped and is NOT sanitized; isolation comes only from the
sandboxed origin. Markdown is shown as literal preformatted text.

This is a pure template generator - it receives type and code, no DB access.
"""

import html
from dataclasses import dataclass, field
from typing import Dict

from config.settings import settings
from models import ArtifactType

SANDBOX_SCRIPTS = "allow-scripts"
SANDBOX_NONE = ""

COMPONENT_NOT_FOUND = "Component not found"


@dataclass
class PreviewDocument:
    """A rendered preview plus the sandbox permissions it must be served with"""
    strategy: str
    html: str
    sandbox: str = SANDBOX_NONE
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        policy = f"sandbox {self.sandbox}".strip()
        self.headers = {
            "Content-Security-Policy": policy,
            "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": "no-referrer",
            **self.headers,
        }


def _escape_script_body(code: str) -> str:
    """Keep embedded code from closing its <script> element early."""
    return code.replace("</script", "<\\/script").replace("</SCRIPT", "<\\/SCRIPT")


class PreviewService:
    """Maps an artifact type to an isolated display document"""

    def render(self, artifact_type: str, code: str) -> PreviewDocument:
        """
        Render code according to its declared type.

        Args:
            artifact_type: one of ArtifactType values; anything else falls back to a code block
            code: artifact source

        Returns:
            PreviewDocument with the HTML and the sandbox policy to serve it under
        """
        code = code or ""
        renderers = {
            ArtifactType.HTML.value: self._render_html,
            ArtifactType.REACT.value: self._render_react,
            ArtifactType.MARKDOWN.value: self._render_markdown,
            ArtifactType.MERMAID.value: self._render_mermaid,
            ArtifactType.SVG.value: self._render_svg,
        }
        renderer = renderers.get((artifact_type or "").lower(), self._render_code)
        return renderer(code)

    def _render_html(self, code: str) -> PreviewDocument:
        # The artifact is its own document
        return PreviewDocument(strategy="html", html=code, sandbox=SANDBOX_SCRIPTS)

    def _render_react(self, code: str) -> PreviewDocument:
        body = f'''
    <div id="root"></div>
    <script type="text/babel">
{_escape_script_body(code)}
      const __Mounted = (typeof Component !== 'undefined' && Component)
        ? Component
        : () => React.createElement('div', null, '{COMPONENT_NOT_FOUND}');
      const root = ReactDOM.createRoot(document.getElementById('root'));
      root.render(React.createElement(__Mounted));
    </script>'''
        head = f'''
    <script crossorigin src="{settings.PREVIEW_REACT_URL}"></script>
    <script crossorigin src="{settings.PREVIEW_REACT_DOM_URL}"></script>
    <script src="{settings.PREVIEW_BABEL_URL}"></script>
    <script src="{settings.PREVIEW_TAILWIND_URL}"></script>'''
        return PreviewDocument(
            strategy="react",
            html=self._document(body, head=head),
            sandbox=SANDBOX_SCRIPTS,
        )

    def _render_markdown(self, code: str) -> PreviewDocument:
        # Literal text, no Markdown-to-HTML conversion
        body = f'''
    <div class="markdown">
      <pre style="white-space: pre-wrap; font-family: inherit;">{html.escape(code)}</pre>
    </div>'''
        return PreviewDocument(strategy="markdown", html=self._document(body), sandbox=SANDBOX_NONE)

    def _render_mermaid(self, code: str) -> PreviewDocument:
        body = f'''
    <pre class="mermaid">{html.escape(code)}</pre>
    <script src="{settings.PREVIEW_MERMAID_URL}"></script>
    <script>mermaid.initialize({{ startOnLoad: true }});</script>'''
        return PreviewDocument(strategy="mermaid", html=self._document(body), sandbox=SANDBOX_SCRIPTS)

    def _render_svg(self, code: str) -> PreviewDocument:
        # Unescaped on purpose; see module docstring
        body = f'''
    <div class="svg-container" style="display: flex; align-items: center; justify-content: center; min-height: 100vh;">
      <div>{code}</div>
    </div>'''
        return PreviewDocument(strategy="svg", html=self._document(body), sandbox=SANDBOX_SCRIPTS)

    def _render_code(self, code: str) -> PreviewDocument:
        body = f'''
    <pre style="margin: 0; padding: 24px; min-height: 100vh; background: #111827; color: #f3f4f6; overflow: auto;"><code>{html.escape(code)}</code></pre>'''
        return PreviewDocument(strategy="code", html=self._document(body), sandbox=SANDBOX_NONE)

    def _document(self, body: str, head: str = "") -> str:
        return f'''<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>
      body {{
        margin: 0;
        font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
      }}
    </style>{head}
  </head>
  <body>{body}
  </body>
</html>'''


def get_preview_service() -> PreviewService:
    """Dependency injection provider."""
    return PreviewService()
