import unittest

from roster_desk.columns import (
    CIVIL_ID_ALIASES,
    ORIGIN_ALIASES,
    guess_by_aliases,
    guess_civil_id_column,
    guess_name_column,
    guess_origin_column,
)
from roster_desk.normalize import normalize_key, normalize_type


class NormalizeKeyTests(unittest.TestCase):
    def test_separators_and_case_collapse(self):
        for raw in ("Civil_ID", "civil id", "CIVILID", " Civil-Id ", "civil _- id"):
            self.assertEqual(normalize_key(raw), "civilid", raw)

    def test_none_and_non_strings(self):
        self.assertEqual(normalize_key(None), "")
        self.assertEqual(normalize_key(12), "12")

    def test_idempotent(self):
        for raw in ("Req Off", "Driver_Name", "local/overseas", "  A-b C  "):
            once = normalize_key(raw)
            self.assertEqual(normalize_key(once), once)

    def test_slash_is_kept(self):
        self.assertEqual(normalize_key("Local / Overseas"), "local/overseas")


class NormalizeTypeTests(unittest.TestCase):
    def test_recognised_values(self):
        cases = {
            "Overseas": "overseas",
            "OVERSEAS worker": "overseas",
            "local": "local",
            " Local ": "local",
            "O": "overseas",
            "l": "local",
        }
        for raw, expected in cases.items():
            self.assertEqual(normalize_type(raw), expected, raw)

    def test_overseas_wins_when_both_words_present(self):
        self.assertEqual(normalize_type("local, later overseas"), "overseas")

    def test_unrecognised_is_empty(self):
        for raw in ("", None, "foreign", "lo", "ol", "expat"):
            self.assertEqual(normalize_type(raw), "", raw)


class ColumnGuessTests(unittest.TestCase):
    def test_driver_name_beats_plain_name(self):
        self.assertEqual(guess_name_column(["Name", "Driver Name", "Civil ID"]), "Driver Name")

    def test_exact_name_headers(self):
        self.assertEqual(guess_name_column(["ID", "Names"]), "Names")
        self.assertEqual(guess_name_column(["ID", " Driver "]), " Driver ")

    def test_falls_back_to_first_header(self):
        self.assertEqual(guess_name_column(["Employee", "Civil"]), "Employee")

    def test_no_headers(self):
        self.assertEqual(guess_name_column([]), "")
        self.assertEqual(guess_name_column(None), "")

    def test_civil_id_aliases(self):
        self.assertEqual(guess_civil_id_column(["Name", "Civil-ID"]), "Civil-ID")
        self.assertEqual(guess_civil_id_column(["Name", "CID"]), "CID")
        self.assertEqual(guess_civil_id_column(["Name", "Passport"]), "")

    def test_origin_aliases(self):
        self.assertEqual(guess_origin_column(["Name", "Employee Type"]), "Employee Type")
        self.assertEqual(guess_origin_column(["Name", "Local / Overseas"]), "Local / Overseas")
        self.assertEqual(guess_origin_column(["Name", "Nationality"]), "")

    def test_first_matching_header_wins(self):
        self.assertEqual(guess_by_aliases(["Type", "Origin"], ORIGIN_ALIASES), "Type")

    def test_empty_inputs(self):
        self.assertEqual(guess_by_aliases([], CIVIL_ID_ALIASES), "")
        self.assertEqual(guess_by_aliases(["civil id"], []), "")
        self.assertEqual(guess_by_aliases(None, None), "")


if __name__ == "__main__":
    unittest.main()
