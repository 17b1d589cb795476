import unittest
from unittest.mock import patch, MagicMock
from blake3build.backend import (
    BackendStatus,
    TBB_MIN_VERSION,
    negotiate,
    private_compile_options,
)
from blake3build.enums import ArchitectureClass, CompilerFrontend, OsFamily
from blake3build.platform_key import PlatformKey
from blake3build.strategy import resolve
from blake3build.utils.dependency_lookup import LookupResult, StaticLookup


def make_key(width=64, frontend=CompilerFrontend.GNU):
    return PlatformKey(
        architecture_class=ArchitectureClass.AMD64,
        pointer_width=width,
        compiler_frontend=frontend,
        os_family=OsFamily.UNIX,
    )


def tbb_lookup(version="2021.12.0"):
    return StaticLookup({"tbb": version}, handles={"tbb": "TBB::tbb"})


class TestNegotiate(unittest.TestCase):

    @patch('blake3build.backend.logger')
    def test_not_requested_has_no_side_effects(self, mock_logger):
        lookup = MagicMock()
        decision = negotiate(False, True, lookup, make_key())
        self.assertFalse(decision.enabled)
        self.assertEqual(decision.status, BackendStatus.DISABLED)
        lookup.find.assert_not_called()
        self.assertEqual(mock_logger.method_calls, [])

    @patch('blake3build.backend.logger')
    def test_not_found_warns_once_and_disables(self, mock_logger):
        decision = negotiate(True, False, StaticLookup(), make_key())
        self.assertFalse(decision.enabled)
        self.assertIsNone(decision.link_target)
        self.assertEqual(decision.status, BackendStatus.DISABLED)
        mock_logger.warning.assert_called_once()
        self.assertIn("oneTBB not found", mock_logger.warning.call_args[0][0])

    @patch('blake3build.backend.logger')
    def test_not_found_with_fetch_requests_fetch(self, mock_logger):
        decision = negotiate(True, True, StaticLookup(), make_key())
        self.assertEqual(decision.status, BackendStatus.FETCH_REQUESTED)
        self.assertFalse(decision.enabled)
        self.assertEqual(decision.version, TBB_MIN_VERSION)
        mock_logger.warning.assert_not_called()

    @patch('blake3build.backend.logger')
    def test_too_old_counts_as_missing(self, mock_logger):
        decision = negotiate(True, False, tbb_lookup("2020.3"), make_key())
        self.assertFalse(decision.enabled)
        mock_logger.warning.assert_called_once()

    def test_found_links_backend(self):
        decision = negotiate(True, False, tbb_lookup(), make_key(), stdlib="libstdc++")
        self.assertTrue(decision.enabled)
        self.assertEqual(decision.status, BackendStatus.LINKED)
        self.assertEqual(decision.link_target, "TBB::tbb")
        self.assertEqual(decision.version, "2021.12.0")
        self.assertEqual(decision.extra_sources, ("blake3_tbb.cpp",))
        self.assertEqual(decision.extra_definitions, frozenset({"BLAKE3_USE_TBB"}))
        self.assertEqual(decision.stdlib_link_hint, "-lstdc++")
        self.assertEqual(decision.compile_options, ("-fno-exceptions", "-fno-rtti"))
        self.assertEqual(decision.pc_requires, "tbb >= 2021.12.0")

    def test_found_link_target_falls_back_to_imported_target(self):
        lookup = StaticLookup({"tbb": LookupResult(found=True, version="2022.0.0")})
        decision = negotiate(True, False, lookup, make_key())
        self.assertEqual(decision.link_target, "TBB::tbb")

    def test_stdlib_variants(self):
        self.assertEqual(negotiate(True, False, tbb_lookup(), make_key(), stdlib="libc++").stdlib_link_hint, "-lc++")
        self.assertIsNone(negotiate(True, False, tbb_lookup(), make_key(), stdlib=None).stdlib_link_hint)

    def test_32_bit_package_name(self):
        decision = negotiate(True, False, tbb_lookup(), make_key(width=32))
        self.assertEqual(decision.pc_requires, "tbb32 >= 2021.12.0")

    def test_msvc_private_options(self):
        decision = negotiate(True, False, tbb_lookup(), make_key(frontend=CompilerFrontend.MSVC))
        self.assertEqual(decision.compile_options, ("/EHs-c-", "/GR-"))

    def test_private_options_do_not_reach_the_library_plan(self):
        key = make_key()
        decision = negotiate(True, False, tbb_lookup(), key)
        plan = resolve(key)
        for option in decision.compile_options:
            self.assertNotIn(option, plan.compile_options)

    def test_cxxflags_override(self):
        key = make_key()
        self.assertEqual(private_compile_options(key, {"GNU": "-fno-rtti"}), ("-fno-rtti",))
        self.assertEqual(private_compile_options(key, {"MSVC": "/GR-"}), ("-fno-exceptions", "-fno-rtti"))
        other = make_key(frontend=CompilerFrontend.OTHER)
        self.assertEqual(private_compile_options(other), ())

    def test_serialization(self):
        data = negotiate(True, False, tbb_lookup(), make_key(), stdlib="libc++").to_dict()
        self.assertEqual(data["status"], "linked")
        self.assertEqual(data["extra_definitions"], ["BLAKE3_USE_TBB"])


if __name__ == "__main__":
    unittest.main()
