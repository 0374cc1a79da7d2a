from django.test import SimpleTestCase

from students.degrees import (
    DegreePath, InvalidPath, InvalidScore, InvalidTerm, Term,
    apply_degree_edits, degree_patch, empty_degree, normalize_degree, term_payload, term_total, to_score,
)


def sample_degree():
    return {
        'firstTerm': {'agbya': 1, 'coptic': 2, 'hymns': 3, 'taks': 4},
        'secondTerm': {'agbya': 5, 'coptic': 5, 'hymns': 5, 'taks': 5, 'attencance': 5, 'total': 25},
        'thirdTerm': {'agbya': 0, 'coptic': 0, 'hymns': 0, 'taks': 0, 'attencance': 0, 'total': 0},
    }


class DegreePathTests(SimpleTestCase):
    def test_parse_dotted_and_slash_forms(self):
        self.assertIs(DegreePath.parse('degree.firstTerm.agbya'), DegreePath.FIRST_TERM_AGBYA)
        self.assertIs(DegreePath.parse('degree/secondTerm/attencance'), DegreePath.SECOND_TERM_ATTENDANCE)
        self.assertEqual(DegreePath.THIRD_TERM_TOTAL.key(), 'degree/thirdTerm/total')
        self.assertEqual(DegreePath.THIRD_TERM_TOTAL.key('.'), 'degree.thirdTerm.total')

    def test_every_leaf_is_enumerated(self):
        self.assertEqual(len(DegreePath), 18)

    def test_unknown_term(self):
        with self.assertRaises(InvalidTerm):
            DegreePath.parse('degree.fourthTerm.agbya')

    def test_paths_that_do_not_reach_a_leaf(self):
        for path in ['degree.firstTerm', 'degree.firstTerm.agbya.extra', 'grade.firstTerm.agbya',
                     'degree.firstTerm.math', '', None]:
            with self.assertRaises(InvalidPath, msg=path):
                DegreePath.parse(path)


class ScoreTests(SimpleTestCase):
    def test_to_score(self):
        self.assertEqual(to_score('7'), 7)
        self.assertEqual(to_score(7.0), 7)
        self.assertEqual(to_score('2.5'), 2.5)
        self.assertEqual(to_score(''), 0)
        self.assertEqual(to_score(None), 0)
        with self.assertRaises(InvalidScore):
            to_score('abc')
        with self.assertRaises(InvalidScore):
            to_score(True)

    def test_term_total_treats_absent_subjects_as_zero(self):
        self.assertEqual(term_total({'agbya': 1, 'coptic': 2, 'hymns': 3, 'taks': 4}), 10)


class ApplyDegreeEditsTests(SimpleTestCase):
    def test_single_edit_leaves_siblings_untouched(self):
        degree = sample_degree()
        updated = apply_degree_edits(degree, {'degree.secondTerm.hymns': 9})

        self.assertEqual(updated['secondTerm']['hymns'], 9)
        for subject in ('agbya', 'coptic', 'taks', 'attencance'):
            self.assertEqual(updated['secondTerm'][subject], 5)
        self.assertEqual(updated['thirdTerm'], degree['thirdTerm'])
        self.assertEqual(updated['firstTerm']['agbya'], 1)

    def test_total_recomputed_for_touched_term(self):
        updated = apply_degree_edits(sample_degree(), [('degree.secondTerm.hymns', 9)])
        self.assertEqual(updated['secondTerm']['total'], 29)

    def test_first_term_total_derivable_without_attendance(self):
        updated = apply_degree_edits(sample_degree(), {'degree.firstTerm.taks': 6})
        self.assertEqual(updated['firstTerm']['attencance'], 0)
        self.assertEqual(updated['firstTerm']['total'], 1 + 2 + 3 + 6)

    def test_supplied_total_is_replaced_by_the_sum(self):
        updated = apply_degree_edits(sample_degree(), {'degree.secondTerm.total': 100})
        self.assertEqual(updated['secondTerm']['total'], 25)

    def test_input_is_not_mutated(self):
        degree = sample_degree()
        apply_degree_edits(degree, {'degree.thirdTerm.agbya': 3})
        self.assertEqual(degree, sample_degree())

    def test_invalid_edit_rejected_before_any_change(self):
        with self.assertRaises(InvalidTerm):
            apply_degree_edits(sample_degree(), {'degree.firstTerm.agbya': 1, 'degree.summer.agbya': 2})

    def test_missing_degree_is_filled_in(self):
        updated = apply_degree_edits(None, {'degree.thirdTerm.coptic': 4})
        self.assertEqual(set(updated), {t.value for t in Term})
        self.assertEqual(updated['thirdTerm']['total'], 4)
        self.assertEqual(updated['firstTerm']['total'], 0)


class PatchTests(SimpleTestCase):
    def test_degree_patch_only_names_edited_leaves_and_totals(self):
        updated, patch = degree_patch(sample_degree(), {'degree.secondTerm.taks': 1})
        self.assertEqual(patch, {
            'degree/secondTerm/taks': 1,
            'degree/secondTerm/total': 21,
        })
        self.assertEqual(updated['secondTerm']['total'], 21)

    def test_degree_patch_accepts_a_generator(self):
        edits = ((path, value) for path, value in [('degree.firstTerm.agbya', 5)])
        updated, patch = degree_patch(empty_degree(), edits)
        self.assertEqual(updated['firstTerm']['agbya'], 5)
        self.assertEqual(patch, {'degree/firstTerm/agbya': 5, 'degree/firstTerm/total': 5})

    def test_term_payload(self):
        payload = term_payload('firstTerm', {'hymns': 5, 'agbya': 3, 'taks': 2, 'coptic': 4, 'attencance': 1})
        self.assertEqual(payload['degree/firstTerm/total'], 15)
        self.assertEqual(payload['degree/firstTerm/attencance'], 1)
        self.assertEqual(len(payload), 6)

    def test_normalize_degree_keeps_existing_values(self):
        degree = normalize_degree(sample_degree())
        self.assertEqual(degree['secondTerm']['total'], 25)
        self.assertEqual(degree['firstTerm']['total'], 10)
        self.assertEqual(normalize_degree(None), empty_degree())
