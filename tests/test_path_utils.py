import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "py"))

from backend_proxy.path_utils import (
    ensure_leading_slash,
    join_url_parts,
    normalize_redirect_location,
    strip_leading_slash,
    strip_trailing_slash,
)


class PathUtilsTest(unittest.TestCase):
    def test_strip_trailing_slash_collapses_all(self) -> None:
        self.assertEqual(strip_trailing_slash("/path///"), "/path")
        self.assertEqual(strip_trailing_slash("/path"), "/path")
        self.assertEqual(strip_trailing_slash("///"), "")

    def test_strip_leading_slash_collapses_all(self) -> None:
        self.assertEqual(strip_leading_slash("///path"), "path")
        self.assertEqual(strip_leading_slash("path/"), "path/")

    def test_ensure_leading_slash(self) -> None:
        self.assertEqual(ensure_leading_slash("path"), "/path")
        self.assertEqual(ensure_leading_slash("//path"), "/path")
        self.assertEqual(ensure_leading_slash(""), "/")

    def test_join_url_parts(self) -> None:
        self.assertEqual(join_url_parts("http://h/", "/p"), "http://h/p")
        self.assertEqual(join_url_parts("http://h", "p"), "http://h/p")
        self.assertEqual(join_url_parts("http://h///", "///p/q"), "http://h/p/q")


class NormalizeRedirectLocationTest(unittest.TestCase):
    def test_absolute_url_on_same_host(self) -> None:
        self.assertEqual(normalize_redirect_location("http://localhost/new-path", "/base/"), "/new-path")

    def test_absolute_url_keeps_query_and_fragment(self) -> None:
        self.assertEqual(normalize_redirect_location("https://example.com/path?q=1#hash", "/"), "/path?q=1#hash")

    def test_base_path_is_stripped(self) -> None:
        self.assertEqual(normalize_redirect_location("/lj_unittest/page", "/lj_unittest/"), "/page")
        self.assertEqual(normalize_redirect_location("http://backend:8080/lj_unittest/page?x=1", "/lj_unittest/"), "/page?x=1")

    def test_relative_location_gets_leading_slash(self) -> None:
        self.assertEqual(normalize_redirect_location("LAS_DLG_Error.page", "/base/"), "/LAS_DLG_Error.page")

    def test_host_only_url_becomes_root(self) -> None:
        self.assertEqual(normalize_redirect_location("https://example.com", "/"), "/")


if __name__ == "__main__":
    unittest.main()
