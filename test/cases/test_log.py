import sys
import os
import unittest

# Add the test directory to the path
test_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if test_dir not in sys.path:
    sys.path.append(test_dir)

from test_base import FBXExporterTestBase
from test_utils import captured_output
from fbxtiles.fbx_log import log
from fbxtiles.fbx_types import YELLOW, BLUE, RED, RESET, BOLD


class TestLog(FBXExporterTestBase):
    """Formatting of log lines"""

    def logged(self, *args, **kwargs):
        with captured_output() as (out, _):
            log(*args, **kwargs)
        return out.getvalue()

    def test_plain_message(self):
        """No category prints the indented message only"""
        self.assertEqual(self.logged("hello", indent=2), "    hello\n")

    def test_category_tag_and_color(self):
        """Known categories get their tag and color"""
        self.assertEqual(self.logged("parsed", category="loader", indent=1),
                         f"{BOLD}{YELLOW}[LOADER]{RESET}   parsed\n")
        self.assertTrue(self.logged("bad", category="WARNING").startswith(f"{BOLD}{RED}[WARNING]"))

    def test_unknown_category_uses_node_color(self):
        """Categories outside the table are tagged in blue"""
        self.assertTrue(self.logged("x", category="other").startswith(f"{BOLD}{BLUE}[OTHER]{RESET}"))


if __name__ == '__main__':
    unittest.main()
