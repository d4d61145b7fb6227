import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "py"))

from backend_proxy.assets import AssetConfig, EntryPoints, build_injection, inject_assets

CLIENT_TAG = '<script type="module" src="/@vite/client"></script>'


def _config() -> AssetConfig:
    return AssetConfig(
        global_entry_points=EntryPoints(js="/src/main.ts", css="/src/style.css"),
        get_module_entry_points=lambda module: EntryPoints(js=f"/src/{module}.ts", css=f"/src/{module}.css"),
    )


class InjectionListTest(unittest.TestCase):
    def test_order_is_client_then_global_then_module(self) -> None:
        tags = build_injection("dashboard", _config())
        self.assertEqual(
            tags,
            [
                CLIENT_TAG,
                '<link rel="stylesheet" href="/src/style.css">',
                '<script type="module" src="/src/main.ts"></script>',
                '<link rel="stylesheet" href="/src/dashboard.css">',
                '<script type="module" src="/src/dashboard.ts"></script>',
            ],
        )

    def test_module_entry_points_skipped_without_module(self) -> None:
        calls = []

        def resolver(module: str) -> EntryPoints:
            calls.append(module)
            return EntryPoints(js="/x.ts")

        tags = build_injection(None, AssetConfig(global_entry_points=EntryPoints(), get_module_entry_points=resolver))
        self.assertEqual(tags, [CLIENT_TAG])
        self.assertEqual(calls, [])

    def test_empty_paths_are_skipped(self) -> None:
        tags = build_injection(None, AssetConfig(global_entry_points=EntryPoints(js="", css="/g.css")))
        self.assertEqual(tags, [CLIENT_TAG, '<link rel="stylesheet" href="/g.css">'])


class InjectAssetsTest(unittest.TestCase):
    def test_production_assets_removed_and_tags_inserted_before_head_close(self) -> None:
        html = (
            '<html><head><link rel="stylesheet" href="/assets/main-prod.css">'
            '<script src="/assets/main-prod.js"></script></head>'
            "<body><h1>Backend Page</h1></body></html>"
        )
        result = inject_assets(html, "test-module", _config())

        self.assertNotIn("/assets/main-prod.css", result)
        self.assertNotIn("/assets/main-prod.js", result)
        expected_block = "\n".join(build_injection("test-module", _config())) + "\n</head>"
        self.assertIn(expected_block, result)
        self.assertEqual(result, "<html><head>" + expected_block + "<body><h1>Backend Page</h1></body></html>")

    def test_q_p_assets_removed_regardless_of_attribute_order(self) -> None:
        html = (
            "<html><head>\n"
            '<link rel="icon" href="/q/p/lj_unittest/favicon.ico?v=260200">\n'
            '<link rel="stylesheet" type="text/css" href="/q/p/lj_unittest/globals_260200.css" />\n'
            '<script src="/q/p/lj_unittest/globals_260200.js" type="module"></script>\n'
            '<script id="data-global" type="application/json">{"a":1}</script>\n'
            "</head><body></body></html>"
        )
        result = inject_assets(html, None, _config())
        self.assertNotIn("/q/p/", result)
        self.assertIn('<script id="data-global" type="application/json">{"a":1}</script>', result)

    def test_unrelated_tags_are_untouched(self) -> None:
        html = '<head><link rel="stylesheet" href="/static/site.css"><script src="https://cdn.example.com/x.js"></script></head>'
        result = inject_assets(html, None, AssetConfig())
        self.assertTrue(result.startswith('<head><link rel="stylesheet" href="/static/site.css"><script src="https://cdn.example.com/x.js"></script>'))

    def test_inserts_after_body_when_head_missing(self) -> None:
        html = "<body><h1>Hi</h1></body>"
        result = inject_assets(html, None, AssetConfig())
        self.assertEqual(result, f"<body>\n{CLIENT_TAG}<h1>Hi</h1></body>")

    def test_inserts_after_body_with_attributes(self) -> None:
        html = '<body class="x"><p>a</p></body>'
        result = inject_assets(html, None, AssetConfig())
        self.assertEqual(result, f'<body class="x">\n{CLIENT_TAG}<p>a</p></body>')

    def test_prepends_when_no_head_or_body(self) -> None:
        html = "<h1>Fragment</h1>"
        result = inject_assets(html, None, _config())
        self.assertTrue(result.endswith("<h1>Fragment</h1>"))
        self.assertTrue(result.startswith(CLIENT_TAG))
        self.assertEqual(result, "\n".join(build_injection(None, _config())) + html)

    def test_only_first_head_close_is_used(self) -> None:
        html = "<head></head><template></head></template>"
        result = inject_assets(html, None, AssetConfig())
        self.assertEqual(result.count(CLIENT_TAG), 1)
        self.assertTrue(result.startswith(f"<head>{CLIENT_TAG}\n</head>"))

    def test_deterministic(self) -> None:
        html = '<html><head><script src="/assets/a.js"></script></head></html>'
        self.assertEqual(inject_assets(html, "m", _config()), inject_assets(html, "m", _config()))

    def test_data_attributes_do_not_mark_production_tags(self) -> None:
        html = (
            "<html><head>"
            '<link rel="preload" data-href="/assets/lazy.css" href="/static/keep.css">'
            '<script data-src="/q/p/lazy.js" src="/static/keep.js"></script>'
            "</head><body></body></html>"
        )
        result = inject_assets(html, None, _config())
        self.assertIn('data-href="/assets/lazy.css"', result)
        self.assertIn('data-src="/q/p/lazy.js"', result)

    def test_production_src_after_data_attribute_is_still_stripped(self) -> None:
        html = '<head><script data-src="/static/x.js" src="/assets/app.js"></script></head>'
        self.assertNotIn("/assets/app.js", inject_assets(html, None, _config()))


if __name__ == "__main__":
    unittest.main()
