"""
Unit tests for newsletter email body rendering.
"""

from app.services.renderer import render_newsletter_html


class TestRenderNewsletterHtml:

    def test_heading_and_paragraph(self):
        html = render_newsletter_html("Spring Update", "New features shipped.")

        assert "<h1>Spring Update</h1>" in html
        assert "<p>New features shipped.</p>" in html

    def test_no_image_tag_without_url(self):
        html = render_newsletter_html("Spring Update", "New features shipped.", "")
        assert "<img" not in html

    def test_image_tag_references_exact_url(self):
        url = "https://test.supabase.co/storage/v1/object/public/newsletter-assets/newsletters/abcd123.jpg"
        html = render_newsletter_html("Spring Update", "Body", url)

        assert f'<img src="{url}"' in html
        assert 'alt="Newsletter Image"' in html

    def test_empty_description_still_renders_paragraph(self):
        html = render_newsletter_html("Subject only", "")
        assert "<p></p>" in html

    def test_markup_in_text_is_escaped(self):
        html = render_newsletter_html("<script>x</script>", "a & b")

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "a &amp; b" in html

    def test_rendering_is_deterministic(self):
        args = ("Subject", "Description", "https://cdn.example.com/newsletters/x.png")
        assert render_newsletter_html(*args) == render_newsletter_html(*args)
