from __future__ import annotations

import unittest

from contracts.windows import DuplicateCandidate
from window_merge.config import DuplicateDetectionConfig
from window_merge.duplicates import (
    identify_duplicate_candidates,
    normalize_name,
    prepare_duplicate_for_resolution,
    similarity_score,
)
from window_merge.reconciler import merge_window_results


def _groups(*names: str) -> list[dict]:
    return [{"name": n, "description": f"Group {i}", "files": [i]} for i, n in enumerate(names)]


class TestDuplicateGroupDetection(unittest.TestCase):
    def test_location_qualifier_is_flagged(self) -> None:
        candidates = identify_duplicate_candidates(_groups("ME Physical Therapy", "ME Physical Therapy (Northglenn)"))
        self.assertEqual(len(candidates), 1)
        self.assertEqual(candidates[0].group1, "ME Physical Therapy")
        self.assertEqual(candidates[0].group2, "ME Physical Therapy (Northglenn)")
        self.assertGreaterEqual(candidates[0].similarity, 0.9)

    def test_containment_is_flagged(self) -> None:
        [c] = identify_duplicate_candidates(_groups("Acme Corp", "Acme Corporation"))
        self.assertGreaterEqual(c.similarity, 0.85)
        self.assertLessEqual(c.similarity, 1.0)

        [c] = identify_duplicate_candidates(_groups("ABC", "ABC Medical Center"))
        self.assertGreaterEqual(c.similarity, 0.85)

    def test_case_whitespace_and_punctuation_variants_score_one(self) -> None:
        for a, b in [("ACME CORP", "Acme Corp"), ("Acme Corp", "Acme  Corp"), ("Dr. Smith", "Dr Smith")]:
            with self.subTest(a=a, b=b):
                [c] = identify_duplicate_candidates(_groups(a, b))
                self.assertEqual(c.similarity, 1.0)

    def test_unrelated_names_are_not_flagged(self) -> None:
        for a, b in [("Acme Corp", "Beta Inc"), ("Alpha Medical", "Beta Therapy"), ("Dr. Smith", "Doctor Smith")]:
            with self.subTest(a=a, b=b):
                self.assertEqual(identify_duplicate_candidates(_groups(a, b)), [])

    def test_only_similar_pairs_are_reported(self) -> None:
        candidates = identify_duplicate_candidates(_groups("Acme Corp", "Acme Corporation", "Acme Inc"))
        self.assertEqual([(c.group1, c.group2) for c in candidates], [("Acme Corp", "Acme Corporation")])

    def test_blank_names_are_never_compared(self) -> None:
        self.assertEqual(identify_duplicate_candidates(_groups("", "Acme Corp", "  ", "")), [])

    def test_threshold_is_configurable(self) -> None:
        strict = DuplicateDetectionConfig(similarity_threshold=0.9)
        self.assertEqual(identify_duplicate_candidates(_groups("Acme Corp", "Acme Corporation"), strict), [])

        loose = DuplicateDetectionConfig(similarity_threshold=0.6)
        self.assertEqual(len(identify_duplicate_candidates(_groups("Dr. Smith", "Doctor Smith"), loose)), 1)

    def test_scores_stay_within_bands(self) -> None:
        self.assertEqual(similarity_score("Acme", "acme"), 1.0)
        self.assertEqual(similarity_score("", "Acme"), 0.0)
        self.assertLess(similarity_score("Acme Corp", "Zeta Labs"), 0.7)
        self.assertGreater(
            similarity_score("Acme Medical", "Acme Medical Group"), similarity_score("Acme Medical", "Zeta Medical Group")
        )

    def test_normalize_name(self) -> None:
        self.assertEqual(normalize_name("ABC Medical, LLC"), "abc medical llc")
        self.assertEqual(normalize_name("Smith-Jones/Partners_Inc"), "smith jones partners inc")
        self.assertEqual(normalize_name("  Rehab  (Denver) "), "rehab (denver)")

    def test_invalid_config_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            DuplicateDetectionConfig(similarity_threshold=1.5)
        with self.assertRaises(ValueError):
            DuplicateDetectionConfig(sample_file_limit=-1)


class TestPrepareDuplicateForResolution(unittest.TestCase):
    def setUp(self) -> None:
        payload = {
            "window": {
                "window_index": 0,
                "start_index": 0,
                "files": [{"file_id": f"f{p}", "page_number": p} for p in range(1, 8)],
            },
            "files": [
                {"page_number": p, "group_name": "Acme Corp", "group_name_confidence": 4, "group_explanation": f"page {p}"}
                for p in range(1, 6)
            ]
            + [
                {"page_number": p, "group_name": "Acme Corporation", "group_name_confidence": 5, "group_explanation": f"page {p}"}
                for p in (6, 7)
            ],
        }
        self.result = merge_window_results([payload])

    def test_payload_has_true_counts_and_capped_samples(self) -> None:
        [candidate] = identify_duplicate_candidates(self.result.groups)
        prepared = prepare_duplicate_for_resolution(candidate, self.result.groups, self.result.file_meta)

        self.assertEqual(prepared["similarity"], candidate.similarity)
        g1 = prepared["group1"]
        self.assertEqual(g1["name"], "Acme Corp")
        self.assertEqual(g1["file_count"], 5)
        self.assertEqual(len(g1["sample_files"]), 3)
        self.assertEqual(g1["sample_files"][0], {"page_number": 1, "description": "page 1", "confidence": 4.0})
        self.assertEqual(g1["confidence"], {"avg": 4.0, "min": 4.0, "max": 4.0})

        g2 = prepared["group2"]
        self.assertEqual(g2["file_count"], 2)
        self.assertEqual([s["page_number"] for s in g2["sample_files"]], [6, 7])

    def test_sample_limit_is_configurable(self) -> None:
        [candidate] = identify_duplicate_candidates(self.result.groups)
        prepared = prepare_duplicate_for_resolution(
            candidate, self.result.groups, self.result.file_meta, DuplicateDetectionConfig(sample_file_limit=1)
        )
        self.assertEqual(len(prepared["group1"]["sample_files"]), 1)
        self.assertEqual(prepared["group1"]["file_count"], 5)

    def test_missing_group_returns_none(self) -> None:
        candidate = DuplicateCandidate(group1="Acme Corp", group2="Nobody", similarity=0.8)
        self.assertIsNone(prepare_duplicate_for_resolution(candidate, self.result.groups, self.result.file_meta))

    def test_raw_group_mappings_are_accepted(self) -> None:
        groups = [
            {"name": "Acme", "description": "a", "files": ["x", "y"]},
            {"name": "Acme (Denver)", "description": "b", "files": [{"file_id": "z"}]},
        ]
        file_meta = {
            "x": {"page_number": 1, "description": "", "explanation": "letter", "confidence": 2},
            "z": {"page_number": 3, "description": "invoice", "confidence": 5},
        }
        [candidate] = identify_duplicate_candidates(groups)
        prepared = prepare_duplicate_for_resolution(candidate, groups, file_meta)

        self.assertEqual(prepared["group1"]["file_count"], 2)
        self.assertEqual(prepared["group1"]["sample_files"], [{"page_number": 1, "description": "letter", "confidence": 2}])
        self.assertEqual(prepared["group2"]["sample_files"], [{"page_number": 3, "description": "invoice", "confidence": 5}])
        self.assertIsNone(prepared["group1"]["confidence"])


if __name__ == "__main__":
    unittest.main()
