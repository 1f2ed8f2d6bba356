import unittest

from roster_desk.shaper import (
    EmptyRow,
    RecordRow,
    SequenceRow,
    as_row,
    cell_text,
    find_status_start_index,
    plain_row,
    preview_rows,
    row_to_array,
)


MATRIX_COLUMNS = ["Name", "Civil ID", "Type", "ReqOff", "01", "02"]


class StatusStartTests(unittest.TestCase):
    def test_after_req_off(self):
        self.assertEqual(find_status_start_index(MATRIX_COLUMNS), 4)
        self.assertEqual(find_status_start_index(["Name", "req_off", "01"]), 2)

    def test_two_past_type(self):
        self.assertEqual(find_status_start_index(["Name", "Type", "Civil ID", "01"]), 3)

    def test_default(self):
        self.assertEqual(find_status_start_index(["Name", "A", "B", "01"]), 3)
        self.assertEqual(find_status_start_index([]), 3)


class RowToArrayTests(unittest.TestCase):
    def test_length_always_matches_columns(self):
        rows = [
            ["Ali", "1"],
            ["Ali", "1", "local", 2, "WORK", "OFF", "extra"],
            {"name": "Ali"},
            None,
            "not a row",
            42,
        ]
        for row in rows:
            self.assertEqual(len(row_to_array(row, MATRIX_COLUMNS)), len(MATRIX_COLUMNS), row)

    def test_sequence_is_padded_and_truncated(self):
        self.assertEqual(row_to_array(["Ali", 1], ["Name", "Civil ID", "Type"]), ["Ali", "1", ""])
        self.assertEqual(row_to_array(["Ali", "1", "x"], ["Name"]), ["Ali"])

    def test_record_keys_match_by_normalized_name(self):
        record = {"name": "Bea", "civil_id": "2", "TYPE": "overseas", "req-off": 1, "01": "OFF"}
        self.assertEqual(
            row_to_array(record, MATRIX_COLUMNS),
            ["Bea", "2", "overseas", "1", "OFF", ""],
        )

    def test_no_columns(self):
        self.assertEqual(row_to_array(["Ali"], []), [])
        self.assertEqual(row_to_array({"a": 1}, None), [])

    def test_scalar_rendering(self):
        self.assertEqual(cell_text(None), "")
        self.assertEqual(cell_text(True), "true")
        self.assertEqual(cell_text(False), "false")
        self.assertEqual(cell_text(3.0), "3")
        self.assertEqual(cell_text(2.5), "2.5")
        self.assertEqual(cell_text("OFF"), "OFF")


class RowVariantTests(unittest.TestCase):
    def test_as_row(self):
        self.assertEqual(as_row(["a", 1]), SequenceRow(("a", 1)))
        self.assertEqual(as_row({"a": 1}), RecordRow({"a": 1}))
        self.assertEqual(as_row(None), EmptyRow())
        shaped = SequenceRow(("x",))
        self.assertIs(as_row(shaped), shaped)

    def test_plain_row(self):
        self.assertEqual(plain_row(as_row(("a", 1))), ["a", 1])
        self.assertEqual(plain_row(as_row({"a": 1})), {"a": 1})
        self.assertIsNone(plain_row(EmptyRow()))


class PreviewTests(unittest.TestCase):
    def test_cells_are_classified(self):
        preview = preview_rows(MATRIX_COLUMNS, [["Ali", "1", "local", "", "WORK", "OFF"]])
        self.assertEqual(
            preview[0],
            [
                ("Ali", "identity"),
                ("1", "identity"),
                ("local", "identity"),
                ("", "identity"),
                ("WORK", "WORK"),
                ("OFF", "OFF"),
            ],
        )

    def test_non_off_status_reads_as_work(self):
        preview = preview_rows(MATRIX_COLUMNS, [["Ali", "1", "local", "", "", "off"]])
        self.assertEqual([kind for _, kind in preview[0][4:]], ["WORK", "WORK"])

    def test_limit(self):
        rows = [[f"Driver {i}"] for i in range(250)]
        self.assertEqual(len(preview_rows(MATRIX_COLUMNS, rows)), 200)
        self.assertEqual(len(preview_rows(MATRIX_COLUMNS, rows, limit=5)), 5)


if __name__ == "__main__":
    unittest.main()
