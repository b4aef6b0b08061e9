import unittest

from xlfsync.config.settings import Settings
from xlfsync.refresh import RefreshResult, refresh_document, update_master, set_unit_translated
from xlfsync.suggestions import SuggestionCorpus
from xlfsync.xliff_obj import (
    TargetState, StateQualifier, TranslationToken, CustomNoteType, RefreshXlfHint, TranslationUnit, Target,
)

from xlf_factory import unit, document, master, not_translated

HINT = CustomNoteType.REFRESH_XLF_HINT

NAB_TAGS = Settings()
EXTERNAL = Settings(use_external_translation_tool=True)
DTS = Settings(use_dts=True)


class TestRefreshStructure(unittest.TestCase):
    def test_output_follows_master_order(self):
        m = master([unit("a", "A"), unit("b", "B"), unit("c", "C")])
        lang = document("sv-SE", [unit("c", "C", "Cee"), unit("a", "A", "Aa"), unit("x", "X", "Ex")])

        new_doc, result = refresh_document(m, lang, NAB_TAGS)

        self.assertEqual([u.id for u in new_doc.units], ["a", "b", "c"])
        self.assertEqual(result.added_units, 1)
        self.assertEqual(result.removed_units, 1)
        self.assertEqual(new_doc.units[0].target.text, "Aa")
        self.assertEqual(new_doc.original, "App.g.xlf")
        self.assertEqual(new_doc.target_language, "sv-SE")

    def test_untranslatable_master_units_are_skipped(self):
        m = master([unit("a", "A"), unit("b", "B", translate=False)])
        lang = document("sv-SE", [unit("b", "B", "Bee")])

        new_doc, result = refresh_document(m, lang, NAB_TAGS)

        self.assertEqual([u.id for u in new_doc.units], ["a"])
        self.assertEqual(result.removed_units, 1)

    def test_duplicate_ids_keep_first_occurrence(self):
        m = master([unit("a", "A")])
        lang = document("sv-SE", [unit("a", "A", "First"), unit("a", "A", "Second")])

        new_doc, result = refresh_document(m, lang, NAB_TAGS)

        self.assertEqual(len(new_doc.units), 1)
        self.assertEqual(new_doc.units[0].target.text, "First")
        self.assertEqual(result.removed_units, 1)

    def test_language_document_is_not_the_output(self):
        m = master([unit("a", "A")])
        lang = document("sv-SE", [])
        new_doc, _ = refresh_document(m, lang, NAB_TAGS)
        self.assertIsNot(new_doc, lang)
        self.assertEqual(len(lang.units), 0)

    def test_sort_only_reorders_without_syncing(self):
        m = master([unit("a", "A"), unit("b", "B new"), unit("c", "C")])
        lang = document("sv-SE", [unit("b", "B old", "Bee"), unit("a", "A", "Aa", developer_note="stale")])

        new_doc, result = refresh_document(m, lang, NAB_TAGS, sort_only=True)

        self.assertEqual([u.id for u in new_doc.units], ["a", "b"])
        self.assertEqual(new_doc.units[1].source, "B old")
        self.assertEqual(new_doc.units[0].developer_note_content(), "stale")
        self.assertEqual(result.added_units, 0)
        self.assertEqual(result.updated_sources, 0)

    def test_result_accumulates(self):
        m = master([unit("a", "A")])
        result = RefreshResult()
        refresh_document(m, document("sv-SE", []), NAB_TAGS, result=result)
        refresh_document(m, document("da-DK", []), NAB_TAGS, result=result)
        self.assertEqual(result.added_units, 2)


class TestNewUnits(unittest.TestCase):
    def test_nab_tags_new_unit(self):
        m = master([unit("a", "Hello", developer_note="Greeting")])
        new_doc, _ = refresh_document(m, document("sv-SE", []), NAB_TAGS)

        u = new_doc.units[0]
        self.assertEqual(u.target.translation_token, TranslationToken.NOT_TRANSLATED)
        self.assertEqual(u.target.text, "")
        self.assertIsNone(u.target.state)
        self.assertEqual(u.custom_note_content(HINT), RefreshXlfHint.NEW.value)
        self.assertEqual(u.developer_note_content(), "Greeting")

    def test_external_new_unit(self):
        m = master([unit("a", "Hello")])
        new_doc, _ = refresh_document(m, document("sv-SE", []), EXTERNAL)

        u = new_doc.units[0]
        self.assertEqual(u.target.state, TargetState.NEEDS_TRANSLATION)
        self.assertIsNone(u.target.translation_token)
        self.assertEqual(u.custom_note_content(HINT), RefreshXlfHint.NEW.value)

    def test_same_language_copies_source(self):
        m = master([unit("a", "Hello")])

        new_doc, _ = refresh_document(m, document("en-us", []), NAB_TAGS)
        u = new_doc.units[0]
        self.assertEqual(u.target.text, "Hello")
        self.assertEqual(u.target.translation_token, TranslationToken.REVIEW)
        self.assertEqual(u.custom_note_content(HINT), RefreshXlfHint.NEW_COPIED_SOURCE.value)

        new_doc, _ = refresh_document(m, document("en-US", []), EXTERNAL)
        self.assertEqual(new_doc.units[0].target.text, "Hello")
        self.assertEqual(new_doc.units[0].target.state, TargetState.NEEDS_ADAPTATION)

        new_doc, _ = refresh_document(m, document("en-US", []), DTS)
        self.assertEqual(new_doc.units[0].target.state, TargetState.NEEDS_REVIEW_TRANSLATION)
        self.assertEqual(new_doc.units[0].target.state_qualifier, StateQualifier.EXACT_MATCH)

    def test_empty_source_gets_empty_target(self):
        m = master([unit("a", "")])
        new_doc, _ = refresh_document(m, document("sv-SE", []), NAB_TAGS)
        self.assertEqual(new_doc.units[0].target.text, "")

    def test_existing_unit_without_target_is_seeded(self):
        m = master([unit("a", "Hello")])
        lang = document("sv-SE", [unit("a", "Hello")])
        new_doc, result = refresh_document(m, lang, EXTERNAL)
        self.assertEqual(new_doc.units[0].target.state, TargetState.NEEDS_TRANSLATION)
        self.assertEqual(result.added_units, 1)


class TestSourceChange(unittest.TestCase):
    def _refresh(self, settings, state=None):
        m = master([unit("a", "Hello world")])
        lang = document("sv-SE", [unit("a", "Hello", "Hej", state=state)])
        return refresh_document(m, lang, settings)

    def test_nab_tags(self):
        new_doc, result = self._refresh(NAB_TAGS)
        u = new_doc.units[0]
        self.assertEqual(u.source, "Hello world")
        self.assertEqual(u.target.text, "Hej")
        self.assertEqual(u.target.translation_token, TranslationToken.REVIEW)
        self.assertEqual(u.custom_note_content(HINT), RefreshXlfHint.MODIFIED_SOURCE.value)
        self.assertEqual(result.updated_sources, 1)

    def test_external(self):
        new_doc, _ = self._refresh(EXTERNAL, TargetState.TRANSLATED)
        u = new_doc.units[0]
        self.assertEqual(u.target.state, TargetState.NEEDS_REVIEW_TRANSLATION)
        self.assertIsNone(u.target.state_qualifier)
        self.assertEqual(u.custom_note_content(HINT), RefreshXlfHint.MODIFIED_SOURCE.value)

    def test_dts(self):
        new_doc, _ = self._refresh(DTS, TargetState.TRANSLATED)
        u = new_doc.units[0]
        self.assertEqual(u.target.state, TargetState.NEEDS_REVIEW_TRANSLATION)
        self.assertTrue(u.has_custom_note(HINT))

    def test_same_language_copy_follows_source(self):
        m = master([unit("a", "New text")])
        lang = document("en-US", [unit("a", "Old text", "Old text", state=TargetState.NEEDS_ADAPTATION)])

        new_doc, _ = refresh_document(m, lang, EXTERNAL)

        u = new_doc.units[0]
        self.assertEqual(u.target.text, "New text")
        self.assertEqual(u.target.state, TargetState.NEEDS_REVIEW_TRANSLATION)

    def test_same_language_with_several_targets_keeps_text(self):
        m = master([unit("a", "New text")])
        lang_unit = unit("a", "Old text", "Old text", token=TranslationToken.SUGGESTION)
        lang_unit.add_target(Target("Old text", translation_token=TranslationToken.SUGGESTION))

        new_doc, _ = refresh_document(m, document("en-US", [lang_unit]), NAB_TAGS)

        u = new_doc.units[0]
        self.assertEqual(u.source, "New text")
        self.assertEqual([t.text for t in u.targets], ["Old text", "Old text"])


class TestUnitTargets(unittest.TestCase):
    def test_single_target(self):
        u = unit("a", "Hello", "Hej")
        self.assertEqual(u.single_target().text, "Hej")
        self.assertFalse(u.has_multiple_targets())

    def test_single_target_rejects_zero_or_several(self):
        with self.assertRaises(ValueError):
            unit("a", "Hello").single_target()

        u = unit("a", "Hello", "Hej")
        u.add_target(Target("Tjena"))
        self.assertTrue(u.has_multiple_targets())
        with self.assertRaises(ValueError):
            u.single_target()


class TestSync(unittest.TestCase):
    def test_translated_unit_is_stable(self):
        m = master([unit("a", "Hello", developer_note="Greeting")])
        lang = document("sv-SE", [unit("a", "Hello", "Hej", state=TargetState.TRANSLATED, developer_note="Greeting")])

        first, result = refresh_document(m, lang, EXTERNAL)
        second, _ = refresh_document(m, first, EXTERNAL)

        self.assertEqual(result.message(), "Nothing changed")
        self.assertEqual(second.units[0].target.text, "Hej")
        self.assertEqual(second.units[0].target.state, TargetState.TRANSLATED)
        self.assertFalse(second.units[0].has_custom_note(HINT))

    def test_nab_tags_translated_unit_is_stable(self):
        m = master([unit("a", "Hello")])

        first, result = refresh_document(m, document("sv-SE", [unit("a", "Hello", "Hej")]), NAB_TAGS)
        second, second_result = refresh_document(m, first, NAB_TAGS)

        self.assertEqual(result.message(), "Nothing changed")
        self.assertEqual(second_result.message(), "Nothing changed")
        self.assertEqual(second.units[0].target.text, "Hej")
        self.assertIsNone(second.units[0].target.translation_token)
        self.assertFalse(second.units[0].has_custom_note(HINT))

    def test_dts_translated_unit_is_stable(self):
        m = master([unit("a", "Hello")])
        lang = document("sv-SE", [unit("a", "Hello", "Hej", state=TargetState.TRANSLATED)])

        first, result = refresh_document(m, lang, DTS)
        second, second_result = refresh_document(m, first, DTS)

        self.assertEqual(result.message(), "Nothing changed")
        self.assertEqual(second_result.message(), "Nothing changed")
        self.assertEqual(second.units[0].target.state, TargetState.TRANSLATED)
        self.assertIsNone(second.units[0].target.state_qualifier)
        self.assertFalse(second.units[0].has_custom_note(HINT))

    def test_max_width_synced_except_dts(self):
        m = master([unit("a", "Hello", max_width=20)])

        new_doc, result = refresh_document(m, document("sv-SE", [unit("a", "Hello", "Hej", max_width=10)]), EXTERNAL)
        self.assertEqual(new_doc.units[0].max_width, 20)
        self.assertEqual(result.updated_max_widths, 1)

        new_doc, result = refresh_document(m, document("sv-SE", [unit("a", "Hello", "Hej", max_width=10)]), DTS)
        self.assertEqual(new_doc.units[0].max_width, 10)
        self.assertEqual(result.updated_max_widths, 0)

    def test_developer_note_synced(self):
        m = master([unit("a", "Hello", developer_note="New comment"), unit("b", "Bye")])
        lang = document("sv-SE", [
            unit("a", "Hello", "Hej", developer_note="Old comment"),
            unit("b", "Bye", "Hejdå", developer_note="Dropped"),
        ])

        new_doc, result = refresh_document(m, lang, NAB_TAGS)

        self.assertEqual(new_doc.units[0].developer_note_content(), "New comment")
        self.assertIsNone(new_doc.units[1].developer_note())
        self.assertEqual(result.updated_notes, 2)

    def test_hint_removed_once_translated(self):
        translated = unit("a", "Hello", "Hej")
        translated.insert_custom_note(HINT, RefreshXlfHint.NEW.value)
        m = master([unit("a", "Hello")])

        new_doc, result = refresh_document(m, document("sv-SE", [translated]), NAB_TAGS)

        self.assertFalse(new_doc.units[0].has_custom_note(HINT))
        self.assertEqual(result.removed_notes, 1)

    def test_dts_resolved_hint_forces_translated(self):
        signed_off = unit("a", "Hello", "Hej", state=TargetState.SIGNED_OFF, qualifier=StateQualifier.LEVERAGED_TM)
        signed_off.insert_custom_note(HINT, RefreshXlfHint.NEW.value)
        m = master([unit("a", "Hello")])

        new_doc, _ = refresh_document(m, document("sv-SE", [signed_off]), DTS)

        u = new_doc.units[0]
        self.assertFalse(u.has_custom_note(HINT))
        self.assertEqual(u.target.state, TargetState.TRANSLATED)
        self.assertIsNone(u.target.state_qualifier)


class TestRefreshValidation(unittest.TestCase):
    def _label(self, target, state=None):
        return unit("Codeunit 1 - NamedType 2", "Value %1", target, state=state)

    def test_missing_placeholder_external(self):
        m = master([self._label(None)])
        lang = document("sv-SE", [self._label("Wert", TargetState.TRANSLATED)])

        new_doc, _ = refresh_document(m, lang, EXTERNAL)

        u = new_doc.units[0]
        self.assertEqual(u.target.state, TargetState.NEEDS_REVIEW_TRANSLATION)
        self.assertIn("%1", u.custom_note_content(HINT))

    def test_missing_placeholder_dts(self):
        m = master([self._label(None)])
        lang = document("sv-SE", [self._label("Wert", TargetState.TRANSLATED)])

        new_doc, _ = refresh_document(m, lang, DTS)

        u = new_doc.units[0]
        self.assertEqual(u.target.state, TargetState.NEEDS_REVIEW_L10N)
        self.assertEqual(u.target.state_qualifier, StateQualifier.REJECTED_INACCURATE)

    def test_missing_placeholder_nab_tags(self):
        m = master([self._label(None)])
        new_doc, _ = refresh_document(m, document("sv-SE", [self._label("Wert")]), NAB_TAGS)
        self.assertEqual(new_doc.units[0].target.translation_token, TranslationToken.REVIEW)

    def test_detection_can_be_disabled(self):
        m = master([self._label(None)])
        lang = document("sv-SE", [self._label("Wert", TargetState.TRANSLATED)])

        new_doc, _ = refresh_document(m, lang, EXTERNAL.replace(detect_invalid_targets=False))

        self.assertEqual(new_doc.units[0].target.state, TargetState.TRANSLATED)


class TestRefreshMatching(unittest.TestCase):
    def _corpus(self, *maps):
        corpus = SuggestionCorpus()
        for match_map in maps:
            corpus.add_map("sv-SE", match_map)
        return corpus

    def test_nab_tags_suggestion(self):
        m = master([unit("a", "Hello")])
        corpus = self._corpus({"Hello": ["Hej"]})

        new_doc, result = refresh_document(m, document("sv-SE", []), NAB_TAGS, corpus)

        u = new_doc.units[0]
        self.assertEqual(len(u.targets), 1)
        self.assertEqual(u.target.text, "Hej")
        self.assertEqual(u.target.translation_token, TranslationToken.SUGGESTION)
        self.assertEqual(u.custom_note_content(HINT), RefreshXlfHint.SUGGESTION.value)
        self.assertEqual(result.suggestions_added, 1)

    def test_later_map_wins(self):
        m = master([unit("a", "Hello")])
        corpus = self._corpus({"Hello": ["X"]}, {"Hello": ["Y"]})

        new_doc, _ = refresh_document(m, document("sv-SE", []), EXTERNAL, corpus)

        u = new_doc.units[0]
        self.assertEqual(u.target.text, "Y")
        self.assertEqual(u.target.state, TargetState.TRANSLATED)
        self.assertEqual(u.target.state_qualifier, StateQualifier.EXACT_MATCH)
        self.assertFalse(u.has_custom_note(HINT))

    def test_nab_tags_later_map_wins(self):
        m = master([unit("a", "Hello")])
        corpus = self._corpus({"Hello": ["X"]}, {"Hello": ["Y", "Z"]})

        new_doc, result = refresh_document(m, document("sv-SE", []), NAB_TAGS, corpus)

        u = new_doc.units[0]
        self.assertEqual([t.text for t in u.targets], ["Y", "Z"])
        self.assertTrue(all(t.translation_token == TranslationToken.SUGGESTION for t in u.targets))
        self.assertEqual(result.suggestions_added, 2)

    def test_matched_target_is_validated_external(self):
        m = master([unit("Codeunit 1 - NamedType 2", "Value %1")])
        corpus = self._corpus({"Value %1": ["Wert"]})

        new_doc, _ = refresh_document(m, document("sv-SE", []), EXTERNAL, corpus)

        u = new_doc.units[0]
        self.assertEqual(u.target.text, "Wert")
        self.assertEqual(u.target.state, TargetState.NEEDS_REVIEW_TRANSLATION)
        self.assertIn("%1", u.custom_note_content(HINT))

    def test_matched_target_is_validated_dts(self):
        m = master([unit("Codeunit 1 - NamedType 2", "Value %1")])
        corpus = self._corpus({"Value %1": ["Wert"]})

        new_doc, _ = refresh_document(m, document("sv-SE", []), DTS, corpus)

        u = new_doc.units[0]
        self.assertEqual(u.target.state, TargetState.NEEDS_REVIEW_L10N)
        self.assertEqual(u.target.state_qualifier, StateQualifier.REJECTED_INACCURATE)
        self.assertIn("%1", u.custom_note_content(HINT))

    def test_own_translations_win_over_corpus(self):
        m = master([unit("a", "Hello"), unit("b", "Hello")])
        lang = document("sv-SE", [unit("b", "Hello", "Tjena", state=TargetState.TRANSLATED)])
        corpus = self._corpus({"Hello": ["Hej"]})

        new_doc, _ = refresh_document(m, lang, EXTERNAL, corpus)

        self.assertEqual(new_doc.units[0].target.text, "Tjena")

    def test_corpus_is_not_modified(self):
        m = master([unit("a", "Hello")])
        corpus = self._corpus({"Hello": ["Hej"]})
        refresh_document(m, document("sv-SE", [unit("z", "Bye", "Hejdå")]), NAB_TAGS, corpus)
        self.assertEqual(len(corpus), 1)

    def test_other_language_not_matched(self):
        m = master([unit("a", "Hello")])
        new_doc, _ = refresh_document(m, document("da-DK", []), NAB_TAGS, self._corpus({"Hello": ["Hej"]}))
        self.assertEqual(new_doc.units[0].target.translation_token, TranslationToken.NOT_TRANSLATED)

    def test_exact_match_state_override(self):
        m = master([unit("a", "Hello")])
        settings = DTS.replace(exact_match_state=TargetState.SIGNED_OFF)

        new_doc, _ = refresh_document(m, document("sv-SE", []), settings, self._corpus({"Hello": ["Hej"]}))

        self.assertEqual(new_doc.units[0].target.state, TargetState.SIGNED_OFF)
        self.assertIsNone(new_doc.units[0].target.state_qualifier)

    def test_matching_disabled_skips_own_translations(self):
        m = master([unit("a", "Hello"), unit("b", "Hello")])
        lang = document("sv-SE", [unit("b", "Hello", "Tjena", state=TargetState.TRANSLATED)])

        new_doc, _ = refresh_document(m, lang, EXTERNAL.replace(use_matching=False))

        self.assertEqual(new_doc.units[0].target.state, TargetState.NEEDS_TRANSLATION)


class TestUpdateMaster(unittest.TestCase):
    def test_update_master(self):
        m = master([unit("a", "Old", max_width=10), unit("b", "Bee")])
        extracted = [
            unit("a", "New", max_width=20, developer_note="Comment"),
            unit("b", "Bee", translate=False),
            unit("c", "Sea"),
        ]

        result = update_master(m, extracted)

        self.assertEqual([u.id for u in m.units], ["a", "c"])
        self.assertEqual(m.units[0].source, "New")
        self.assertEqual(m.units[0].max_width, 20)
        self.assertEqual(m.units[0].developer_note_content(), "Comment")
        self.assertEqual(result.added_units, 1)
        self.assertEqual(result.removed_units, 1)
        self.assertEqual(result.updated_sources, 1)
        self.assertEqual(result.message(), "1 inserted translations, 1 updated maxwidth, 1 updated notes, "
                                           "1 updated sources, 1 removed translations in App.g.xlf")


class TestSetUnitTranslated(unittest.TestCase):
    def test_nab_tags(self):
        u = not_translated("a", "Hello")
        u.insert_custom_note(HINT, RefreshXlfHint.NEW.value)
        doc = document("sv-SE", [u])

        set_unit_translated(doc, "a", NAB_TAGS)

        self.assertIsNone(u.target.translation_token)
        self.assertFalse(u.has_custom_note(HINT))

    def test_external(self):
        u = unit("a", "Hello", "Hej", state=TargetState.NEEDS_REVIEW_TRANSLATION)
        doc = document("sv-SE", [u])

        set_unit_translated(doc, "a", EXTERNAL, TargetState.SIGNED_OFF)

        self.assertEqual(u.target.state, TargetState.SIGNED_OFF)

    def test_missing_unit(self):
        with self.assertRaises(KeyError):
            set_unit_translated(document("sv-SE", []), "nope", NAB_TAGS)


class TestRefreshResult(unittest.TestCase):
    def test_message(self):
        result = RefreshResult(checked_files=2, added_units=3, updated_sources=1)
        self.assertEqual(result.message(), "3 inserted translations, 1 updated sources in 2 XLF files")

    def test_nothing_changed(self):
        self.assertEqual(RefreshResult().message(), "Nothing changed")

    def test_merge(self):
        total = RefreshResult(added_units=1).merge(RefreshResult(added_units=2, removed_units=1))
        self.assertEqual(total.added_units, 3)
        self.assertEqual(total.removed_units, 1)


if __name__ == "__main__":
    unittest.main()
