"""Tests for markdowntailor/core/render.py and the template catalog."""
import unittest

from markdowntailor.core.errors import ValidationError
from markdowntailor.core.render import font_url, preview_context, render_markdown, sanitize_css
from markdowntailor.core.templates import ResumeStyles, TemplateTag, get_template, list_templates


class TestRenderMarkdown(unittest.TestCase):
    def test_headings_and_lists(self):
        html = render_markdown("# Name\n\n- one\n- two")
        self.assertIn("<h1>Name</h1>", html)
        self.assertIn("<li>one</li>", html)

    def test_scripts_are_stripped(self):
        html = render_markdown("hello <script>alert(1)</script>")
        self.assertNotIn("<script", html)

    def test_links_open_in_new_tab(self):
        html = render_markdown("[site](https://example.com)")
        self.assertIn('target="_blank"', html)
        self.assertIn("noopener", html)

    def test_javascript_links_are_dropped(self):
        html = render_markdown('<a href="javascript:alert(1)">x</a>')
        self.assertNotIn("javascript:", html)

    def test_right_aligned_spans_survive(self):
        html = render_markdown('**Engineer** <span class="right">2020</span>')
        self.assertIn('<span class="right">2020</span>', html)


class TestSanitizeCss(unittest.TestCase):
    def test_plain_rules_untouched(self):
        css = "h1 { color: #333; }"
        self.assertEqual(sanitize_css(css), css)

    def test_dangerous_payloads_removed(self):
        css = "@import url(evil.css); body { background: url(javascript:alert(1)); width: expression(alert(1)); }"
        cleaned = sanitize_css(css)
        self.assertNotIn("@import", cleaned)
        self.assertNotIn("javascript:", cleaned)
        self.assertNotIn("expression(", cleaned)

    def test_style_tag_breakout_removed(self):
        self.assertNotIn("</style>", sanitize_css("p {}</style><script>x</script>"))

    def test_nested_style_tag_breakout_removed(self):
        for css in (
            "</sty</style>le><script>alert(1)</script>",
            "h1 { color: red; }</sty</style>le><script>alert(1)</script>",
            "h1 { color: </sty</style>le>red; }",
        ):
            cleaned = sanitize_css(css)
            self.assertNotIn("<", cleaned, css)
            self.assertNotIn("script>", cleaned, css)

    def test_unknown_properties_dropped(self):
        cleaned = sanitize_css("p { color: red; behavior: url(x.htc); content: 'x'; -moz-binding: url(y); }")
        self.assertEqual(cleaned, "p { color: red; }")

    def test_at_rules_and_comments_dropped(self):
        cleaned = sanitize_css("/* note */ @media print { h1 { color: red; } } h2 { margin: 0; }")
        self.assertNotIn("@media", cleaned)
        self.assertNotIn("note", cleaned)
        self.assertIn("h2 { margin: 0; }", cleaned)

    def test_dangerous_values_dropped_despite_spacing(self):
        cleaned = sanitize_css("p { background: url( JavaScript :alert(1)); width: EXPRESSION (1); color: blue; }")
        self.assertEqual(cleaned, "p { color: blue; }")

    def test_template_css_survives(self):
        for template in list_templates():
            cleaned = sanitize_css(template.css)
            self.assertEqual(cleaned.count("{"), template.css.count("{"), template.slug)

    def test_oversized_css_rejected(self):
        with self.assertRaises(ValidationError):
            sanitize_css("p { color: red; }" * 2000)


class TestPreviewContext(unittest.TestCase):
    def test_uses_styles(self):
        ctx = preview_context("# A", "", ResumeStyles(font_size=11, paper_size="Letter").model_dump_json())
        self.assertEqual(ctx["properties"]["--resume-font-size"], "11px")
        self.assertEqual(ctx["paper_size"], "Letter")
        self.assertIn("<h1>A</h1>", ctx["body_html"])

    def test_blank_or_malformed_styles_fall_back_to_defaults(self):
        for styles in ("", "{}", "not json", '{"paper_size": "B5"}'):
            ctx = preview_context("", "", styles)
            self.assertEqual(ctx["paper_size"], "A4", styles)

    def test_system_fonts_have_no_font_url(self):
        self.assertIsNone(font_url(ResumeStyles(font_family="Georgia")))
        self.assertIn("family=Open+Sans", font_url(ResumeStyles(font_family="Open Sans")))


class TestTemplates(unittest.TestCase):
    def test_catalog_has_unique_slugs(self):
        slugs = [t.slug for t in list_templates()]
        self.assertEqual(len(slugs), len(set(slugs)))
        self.assertIn("agile-archer", slugs)

    def test_get_template(self):
        template = get_template("stark-sterling")
        self.assertEqual(template.name, "Stark Sterling")
        self.assertEqual(template.tags, [TemplateTag.MINIMALIST])
        self.assertIsNone(get_template("nope"))

    def test_list_is_a_copy(self):
        list_templates().clear()
        self.assertTrue(list_templates())

    def test_styles_parse_defaults(self):
        self.assertEqual(ResumeStyles.parse("{}"), ResumeStyles())
        self.assertEqual(ResumeStyles.parse(None).font_family, "Inter")


if __name__ == "__main__":
    unittest.main()
