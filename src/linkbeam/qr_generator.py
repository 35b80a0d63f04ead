"""QR code rendering for the desktop side of a relay session.

The code encodes the submission URL and nothing else; scanning it opens
the submission page on the phone.
"""

import base64
import html
import io
from typing import Optional

import qrcode
from qrcode.main import QRCode


class QrGenerator:
    """Render a session's submission URL as a QR code.

    Usage:
        qr = QrGenerator(session["url"], expires_at_ms=session["expiresAt"])
        click.echo(qr.to_terminal())
    """

    def __init__(self, url: str, expires_at_ms: Optional[int] = None):
        """Initialize QR generator.

        Args:
            url: Submission URL to encode.
            expires_at_ms: Session expiry in epoch milliseconds. Shown as a
                countdown on the HTML page when given.
        """
        self.url = url
        self.expires_at_ms = expires_at_ms

    def _create_qr(self) -> QRCode:
        qr = qrcode.QRCode(
            version=None,  # smallest version that fits the URL
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(self.url)
        qr.make(fit=True)
        return qr

    def to_terminal(self) -> str:
        """Render with Unicode half blocks for a dark terminal."""
        output = io.StringIO()
        self._create_qr().print_ascii(out=output, invert=True)
        return output.getvalue()

    def to_png_bytes(self) -> bytes:
        """Render as PNG image data."""
        img = self._create_qr().make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    def to_png(self, path: str) -> None:
        """Write the PNG rendering to ``path``."""
        with open(path, "wb") as f:
            f.write(self.to_png_bytes())

    def to_html(self) -> str:
        """Render a standalone page for ``linkbeam receive --browser``.

        The page shows the code, the URL as a link for phones on the same
        machine, and a countdown to expiry when one is known.
        """
        img_b64 = base64.b64encode(self.to_png_bytes()).decode("ascii")
        safe_url = html.escape(self.url, quote=True)
        expires = "" if self.expires_at_ms is None else str(int(self.expires_at_ms))

        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>LinkBeam - Scan to Send a Link</title>
    <style>
        body {{
            display: flex;
            flex-direction: column;
            align-items: center;
            justify-content: center;
            height: 100vh;
            margin: 0;
            background: #1a1a1a;
            color: #fff;
            font-family: system-ui, sans-serif;
        }}
        img {{ border: 10px solid white; border-radius: 10px; }}
        a {{ color: #a5b4fc; word-break: break-all; }}
        p {{ color: #888; }}
    </style>
</head>
<body data-expires="{expires}">
    <h1>Scan with your phone</h1>
    <img src="data:image/png;base64,{img_b64}" alt="QR code for {safe_url}">
    <p>Or open: <a href="{safe_url}">{safe_url}</a></p>
    <p id="countdown"></p>
    <script>
        const expires = Number(document.body.dataset.expires);
        const countdown = document.getElementById("countdown");
        function tick() {{
            const left = Math.max(0, Math.floor((expires - Date.now()) / 1000));
            countdown.textContent = left > 0
                ? "Expires in " + Math.floor(left / 60) + ":" + String(left % 60).padStart(2, "0")
                : "Expired. Run linkbeam receive again.";
        }}
        if (expires) {{
            tick();
            setInterval(tick, 1000);
        }}
    </script>
</body>
</html>
"""
