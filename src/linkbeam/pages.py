"""HTML served to the phone after scanning the QR code."""

import html


def render_submit_page(session_id: str) -> str:
    """Render the link submission form for a session.

    The page looks the same whether or not the session exists; the
    server's answer to the POST is the only signal.

    Args:
        session_id: Session ID from the scanned URL.

    Returns:
        Complete HTML document.
    """
    safe_id = html.escape(session_id, quote=True)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>LinkBeam - Send a Link</title>
    <style>
        body {{
            display: flex;
            flex-direction: column;
            align-items: center;
            margin: 0;
            padding: 40px 16px;
            background: #1a1a1a;
            color: #fff;
            font-family: system-ui, sans-serif;
        }}
        form {{ width: 100%; max-width: 480px; }}
        input, button {{
            width: 100%;
            box-sizing: border-box;
            padding: 12px;
            margin-top: 12px;
            font-size: 16px;
            border-radius: 8px;
            border: none;
        }}
        button {{ background: #4f46e5; color: #fff; }}
        #status {{ margin-top: 20px; color: #888; }}
    </style>
</head>
<body>
    <h1>Send a Link</h1>
    <form id="form" data-session="{safe_id}">
        <input id="link" type="url" name="link" placeholder="https://example.com" required>
        <button type="submit">Send to desktop</button>
    </form>
    <p id="status"></p>
    <script>
        const form = document.getElementById("form");
        const status = document.getElementById("status");
        form.addEventListener("submit", async (event) => {{
            event.preventDefault();
            status.textContent = "Sending...";
            try {{
                const resp = await fetch(
                    "/submit/" + encodeURIComponent(form.dataset.session),
                    {{
                        method: "POST",
                        headers: {{"Content-Type": "application/json"}},
                        body: JSON.stringify({{link: document.getElementById("link").value}}),
                    }}
                );
                const data = await resp.json();
                status.textContent = resp.ok ? data.message : data.error;
            }} catch (err) {{
                status.textContent = "Failed to send link";
            }}
        }});
    </script>
</body>
</html>
"""
