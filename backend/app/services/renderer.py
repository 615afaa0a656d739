"""
Newsletter email body rendering.
"""

from html import escape


def render_newsletter_html(subject: str, description: str, image_url: str = "") -> str:
    """
    Render the HTML fragment sent to every recipient.

    Heading is the subject, paragraph is the description, and an image tag
    is appended only when image_url is non-empty. Same inputs always give
    the same output.
    """
    parts = [
        f"<h1>{escape(subject, quote=False)}</h1>",
        f"<p>{escape(description, quote=False)}</p>",
    ]
    if image_url:
        parts.append(
            f'<img src="{escape(image_url)}" alt="Newsletter Image" style="max-width: 100%;" />'
        )
    return "\n".join(parts)
