"""Prompt sent to the upstream generative service."""

from __future__ import annotations

import textwrap

_TEMPLATE = textwrap.dedent("""\
    Create a functional single-page website. Respond with HTML, CSS, and JavaScript in separate code blocks:

    ```html
    <!-- index.html -->
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>Website Title</title>
        <link rel="stylesheet" href="style.css">
    </head>
    <body>
        <!-- Content here -->
        <script src="script.js"></script>
    </body>
    </html>
    ```

    ```css
    /* style.css */
    body { margin: 0; font-family: Arial, sans-serif; }
    /* Your styles */
    ```

    ```javascript
    // script.js
    document.addEventListener('DOMContentLoaded', function() {
        // Your code
    });
    ```

    Make it responsive and modern. User request: "{prompt}\"""")


def build_prompt(user_prompt: str) -> str:
    """Wrap the user's description in the file-layout instructions."""
    return _TEMPLATE.replace("{prompt}", user_prompt.strip())
