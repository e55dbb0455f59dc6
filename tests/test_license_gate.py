import unittest
from unittest.mock import patch
from ffplan import license_gate
from ffplan.catalog import load_catalog
from ffplan.errors import LicenseViolation
from ffplan.features import LicenseKind


class TestLicenseGate(unittest.TestCase):

    def setUp(self):
        self.graph = load_catalog().graph

    def test_gpl_flag_without_acceptance(self):
        expanded = self.graph.expand({"build-lib-x264"})
        with self.assertRaises(LicenseViolation) as cm:
            license_gate.check(expanded, frozenset(), self.graph)
        self.assertEqual(cm.exception.flag, "build-lib-x264")
        self.assertIs(cm.exception.required, LicenseKind.GPL)

    def test_acceptance_flag(self):
        expanded = self.graph.expand({"build-lib-x264", "build-license-gpl"})
        license_gate.check(expanded, frozenset(), self.graph)

    def test_explicit_acceptance(self):
        expanded = self.graph.expand({"build-lib-x264"})
        license_gate.check(expanded, frozenset({LicenseKind.GPL}), self.graph)
        license_gate.check(expanded, ["gpl"], self.graph)

    def test_wrong_license_accepted(self):
        expanded = self.graph.expand({"build-lib-fdk-aac"})
        with self.assertRaises(LicenseViolation) as cm:
            license_gate.check(expanded, {LicenseKind.GPL}, self.graph)
        self.assertIs(cm.exception.required, LicenseKind.NONFREE)

    def test_unlicensed_flags_pass(self):
        expanded = self.graph.expand({"avcodec", "avformat", "build-lib-openssl"})
        license_gate.check(expanded, frozenset(), self.graph)

    def test_first_violation_by_name(self):
        expanded = self.graph.expand({"build-lib-x265", "build-lib-x264"})
        with self.assertRaises(LicenseViolation) as cm:
            license_gate.check(expanded, frozenset(), self.graph)
        self.assertEqual(cm.exception.flag, "build-lib-x264")

    @patch("ffplan.license_gate.logger")
    def test_gpl_and_nonfree_together_warns(self, mock_logger):
        expanded = self.graph.expand({"build-lib-x264", "build-lib-fdk-aac"})
        license_gate.check(expanded, {LicenseKind.GPL, LicenseKind.NONFREE}, self.graph)
        mock_logger.warning.assert_called_once()

    def test_effective_licenses(self):
        expanded = self.graph.expand({"build-license-version3"})
        accepted = license_gate.effective_licenses(expanded, ["gpl"], self.graph)
        self.assertEqual(accepted, {LicenseKind.GPL, LicenseKind.VERSION3})

if __name__ == "__main__":
    unittest.main()
