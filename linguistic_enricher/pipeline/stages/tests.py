# -*- coding: utf-8 -*-
#
# License: BSD3
# pylint: disable=too-many-public-methods, invalid-name

"""
Tests for the individual pipeline stages
"""

import unittest
from unittest import mock

from linguistic_enricher.annotation import (selector_token_ids,
                                            find_selector,
                                            token_selector,
                                            POSITION_SELECTOR,
                                            QUOTE_SELECTOR)
from linguistic_enricher.document import SCHEMA_VERSION, seed_document
from linguistic_enricher.errors import (EnricherException,
                                        E_INVARIANT_VIOLATION)
from linguistic_enricher.external.postag import coarse_tag
from linguistic_enricher.ids import mk_id
from linguistic_enricher.offsets import BYTES_UTF8, UTF16
from linguistic_enricher.validation import validate_document

from . import StageContext
from . import (surface_normalization,
               canonicalization,
               segmentation,
               tokenization,
               pos_tagging,
               mwe_extraction,
               mwe_construction,
               mwe_materialization,
               linguistic_analysis,
               chunking,
               head_identification,
               relation_extraction)

# ---------------------------------------------------------------------
# fixtures
# ---------------------------------------------------------------------


def tagged(sentence):
    """
    `(surface, tag)` pairs from a `word/TAG word/TAG` string
    """
    return [tuple(x.rsplit('/', 1)) for x in sentence.split()]


def mk_doc(*sentences):
    """
    Document at the `pos_tagged` checkpoint, one segment per sentence
    (each a `word/TAG ...` string); tokens are separated by single
    spaces in the canonical text
    """
    text = ''
    segments = []
    tokens = []
    for sno, sentence in enumerate(sentences):
        if sno:
            text += ' '
        seg_start = len(text)
        first = len(tokens)
        for j, (surface, tag) in enumerate(tagged(sentence)):
            if j:
                text += ' '
            start = len(text)
            text += surface
            tokens.append({'id': 't%d' % (len(tokens) + 1),
                           'i': len(tokens),
                           'segment_id': 's%d' % (sno + 1),
                           'span': {'start': start, 'end': len(text)},
                           'surface': surface,
                           'flags': {'is_punct':
                                     tokenization.is_punct(surface)},
                           'pos': {'tag': tag, 'coarse': coarse_tag(tag)}})
        segments.append({'id': 's%d' % (sno + 1),
                         'index': sno,
                         'kind': 'sentence',
                         'span': {'start': seg_start, 'end': len(text)},
                         'token_range': {'start': first,
                                         'end': len(tokens)}})
    return {'schema_version': SCHEMA_VERSION,
            'seed_id': mk_id('seed', text),
            'stage': 'pos_tagged',
            'canonical_text': text,
            'index_basis': {'unit': UTF16},
            'segments': segments,
            'tokens': tokens,
            'annotations': []}


def run_stages(doc, *modules):
    "apply stage modules in order"
    for module in modules:
        doc = module.run_stage(doc)
    return doc


def from_text(text, unit=None):
    "a segmented document for raw text"
    return run_stages(seed_document(text, unit),
                      surface_normalization,
                      canonicalization,
                      segmentation)


def of_kind(doc, kind):
    "annotations of a kind"
    return [a for a in doc['annotations'] if a['kind'] == kind]


def surfaces(doc, annotation):
    "token surfaces an annotation covers"
    tokens = dict((t['id'], t) for t in doc['tokens'])
    return [tokens[t]['surface'] for t in selector_token_ids(annotation)]


def chunk_summary(doc):
    "`(chunk type, label)` for every chunk"
    return [(c['chunk_type'], c['label']) for c in of_kind(doc, 'chunk')]


def relation_summary(doc):
    "`(role, predicate surface, argument surface)` for every relation"
    tokens = dict((t['id'], t['surface']) for t in doc['tokens'])
    return [(r['label'], tokens[r['head']['id']], tokens[r['dep']['id']])
            for r in of_kind(doc, 'dependency')
            if r['status'] == 'accepted']


def mk_dep(dep, head, label):
    "dependency observation between two token ids"
    ann = {'id': 'dep-%s' % dep,
           'kind': 'dependency',
           'status': 'observation',
           'label': label,
           'is_root': head is None,
           'dep': {'id': dep},
           'anchor': {'selectors': [token_selector([dep])]},
           'sources': [{'name': 'fixture', 'kind': 'model'}]}
    if head is not None:
        ann['head'] = {'id': head}
    return ann


class StageTestCase(unittest.TestCase):
    "helpers shared by the stage tests"

    def assertViolation(self, func, *args):
        "the call raises an invariant violation"
        with self.assertRaises(EnricherException) as cm:
            func(*args)
        self.assertEqual(E_INVARIANT_VIOLATION, cm.exception.code)
        return cm.exception

# ---------------------------------------------------------------------
# structural stages
# ---------------------------------------------------------------------


class SurfaceNormalizationTest(StageTestCase):
    "stage 00"

    def test_normalize_surface(self):
        "BOM, line endings, tabs, space runs, trailing spaces"
        self.assertEqual('A B C\nD E',
                         surface_normalization.normalize_surface(
                             u'\ufeffA\t\tB   C   \r\nD\t E   '))
        self.assertEqual(u'caf\xe9',
                         surface_normalization.normalize_surface(
                             u'cafe\u0301'))

    def test_normalize_line(self):
        "indentation and empty lines are kept"
        self.assertEqual('  a b', surface_normalization.normalize_line(
            '  a  b  '))
        self.assertEqual(' x', surface_normalization.normalize_line('\tx'))
        self.assertEqual('', surface_normalization.normalize_line('   '))

    def test_run_stage(self):
        "original text is remembered"
        doc = seed_document(u'\ufeffHello\r\nworld  again ')
        out = surface_normalization.run_stage(doc)
        self.assertEqual('Hello\nworld again', out['canonical_text'])
        self.assertEqual(u'\ufeffHello\r\nworld  again ',
                         out['inputs']['original_text'])
        self.assertEqual('Hello\nworld again',
                         out['inputs']['surface_normalized_text'])
        # input left alone
        self.assertNotIn('inputs', doc)

    def test_one_way_door(self):
        "refuses documents with segments"
        doc = from_text('Hello.')
        self.assertViolation(surface_normalization.run_stage, doc)


class CanonicalizationTest(StageTestCase):
    "stage 01"

    def test_from_surface(self):
        "uses the surface normalised text when there is one"
        doc = seed_document('x')
        doc['inputs'] = {'surface_normalized_text': u'e\u0301\r\nb'}
        out = canonicalization.run_stage(doc)
        self.assertEqual(u'\xe9\nb', out['canonical_text'])
        self.assertEqual({'unicode': 'NFC', 'line_endings': 'LF'},
                         out['provenance']['normalization'])
        self.assertEqual(UTF16, out['index_basis']['unit'])

    def test_from_canonical(self):
        "falls back to the current text"
        doc = seed_document('a\rb', BYTES_UTF8)
        out = canonicalization.run_stage(doc)
        self.assertEqual('a\nb', out['canonical_text'])
        self.assertEqual(BYTES_UTF8, out['index_basis']['unit'])

    def test_one_way_door(self):
        "refuses documents with segments"
        self.assertViolation(canonicalization.run_stage, from_text('Hi.'))


class SegmentationTest(StageTestCase):
    "stage 02"

    def spans(self, doc):
        "segment spans as pairs"
        return [(s['span']['start'], s['span']['end'])
                for s in doc['segments']]

    def test_abbreviation(self):
        "an abbreviation does not end a sentence"
        doc = from_text('Dr. Smith went home.')
        self.assertEqual([(0, 20)], self.spans(doc))
        self.assertEqual('segmented', doc['stage'])
        self.assertEqual({'start': 0, 'end': 0},
                         doc['segments'][0]['token_range'])

    def test_two_sentences(self):
        "whitespace between sentences is not part of either"
        doc = from_text('It rained. We left.')
        self.assertEqual([(0, 10), (11, 19)], self.spans(doc))
        self.assertEqual(['s1', 's2'], [s['id'] for s in doc['segments']])

    def test_lowercase_continuation(self):
        "a break before a lower case word is undone"
        doc = from_text('Stop. then go.')
        self.assertEqual(1, len(doc['segments']))

    def test_index_basis(self):
        "spans are expressed in the document's unit"
        doc = from_text(u'Café opens. We left.', BYTES_UTF8)
        self.assertEqual([(0, 12), (13, 21)], self.spans(doc))

    def test_blank(self):
        "blank text has no segments"
        doc = run_stages(seed_document('   \n '),
                         surface_normalization, canonicalization)
        self.assertViolation(segmentation.run_stage, doc)

    def test_one_way_door(self):
        "refuses documents with segments"
        self.assertViolation(segmentation.run_stage, from_text('Hi.'))


class TokenizationTest(StageTestCase):
    "stage 03"

    def words(self, text):
        "token surfaces for a text"
        doc = tokenization.run_stage(from_text(text))
        return [t['surface'] for t in doc['tokens']]

    def test_contraction(self):
        "contractions are split"
        self.assertEqual(['do', "n't", 'stop'], self.words("don't stop"))

    def test_hyphen_compound(self):
        "hyphenated compounds stay whole"
        self.assertEqual(['state-of-the-art'],
                         self.words('state-of-the-art'))

    def test_merges(self):
        "the merge cascade, one rule at a time"
        self.assertEqual([(0, 3)], tokenization.merge_ellipses(
            '...', [(0, 1), (1, 2), (2, 3)]))
        self.assertEqual([(0, 4)], tokenization.merge_dotted_abbreviations(
            'U.S.', [(0, 3), (3, 4)]))
        self.assertEqual([(0, 3)], tokenization.merge_dotted_abbreviations(
            'Dr.', [(0, 2), (2, 3)]))
        self.assertEqual([(0, 2), (2, 3)],
                         tokenization.merge_dotted_abbreviations(
                             'go.', [(0, 2), (2, 3)]))
        self.assertEqual([(0, 16)], tokenization.merge_hyphen_compounds(
            'state-of-the-art',
            [(0, 5), (5, 6), (6, 8), (8, 9), (9, 12), (12, 13), (13, 16)]))
        self.assertEqual([(0, 10)], tokenization.merge_apostrophe_s(
            u'customer’s', [(0, 8), (8, 10)]))

    def test_symbols(self):
        "symbols are tokens of their own"
        self.assertEqual([(0, 5), (5, 6)],
                         tokenization.segment_pieces(u'great\U0001F44D'))

    def test_is_punct(self):
        "all punctuation"
        self.assertTrue(tokenization.is_punct('...'))
        self.assertTrue(tokenization.is_punct(u'“'))
        self.assertFalse(tokenization.is_punct('a.'))
        self.assertFalse(tokenization.is_punct(''))

    def test_run_stage(self):
        "ids, positions, UTF-16 spans and token ranges"
        doc = tokenization.run_stage(from_text(u'Hi \U0001F600 there.'))
        self.assertEqual('tokenized', doc['stage'])
        self.assertEqual(['t1', 't2', 't3', 't4'],
                         [t['id'] for t in doc['tokens']])
        self.assertEqual([(0, 2), (3, 5), (6, 11), (11, 12)],
                         [(t['span']['start'], t['span']['end'])
                          for t in doc['tokens']])
        self.assertEqual([False, False, False, True],
                         [t['flags']['is_punct'] for t in doc['tokens']])
        self.assertEqual({'start': 0, 'end': 4},
                         doc['segments'][0]['token_range'])
        validate_document(doc)

    def test_token_ranges(self):
        "each segment knows its tokens"
        doc = tokenization.run_stage(from_text('It rained. We left.'))
        self.assertEqual([{'start': 0, 'end': 3}, {'start': 3, 'end': 6}],
                         [s['token_range'] for s in doc['segments']])
        self.assertEqual(['s1'] * 3 + ['s2'] * 3,
                         [t['segment_id'] for t in doc['tokens']])

    def test_one_way_door(self):
        "refuses documents with tokens, or without segments"
        doc = tokenization.run_stage(from_text('Hi.'))
        self.assertViolation(tokenization.run_stage, doc)
        doc = run_stages(seed_document('Hi.'), surface_normalization)
        self.assertViolation(tokenization.run_stage, doc)

# ---------------------------------------------------------------------
# tagging
# ---------------------------------------------------------------------


class PosTaggingTest(StageTestCase):
    "stage 04"

    def test_run_stage(self):
        "Penn tags and coarse tags"
        doc = tokenization.run_stage(from_text('Alice sees Bob in Berlin.'))
        out = pos_tagging.run_stage(doc)
        self.assertEqual(['NNP', 'VBZ', 'NNP', 'IN', 'NNP', '.'],
                         [t['pos']['tag'] for t in out['tokens']])
        self.assertEqual(['PROPN', 'VERB', 'PROPN', 'ADP', 'PROPN', 'PUNCT'],
                         [t['pos']['coarse'] for t in out['tokens']])
        self.assertEqual('pos_tagged', out['stage'])
        self.assertNotIn('lexicon', out['tokens'][0])

    def test_lexicon_evidence(self):
        "word tokens get title index evidence when it is configured"
        lexicon = mock.Mock(enabled=True)
        lexicon.evidence.return_value = {'wiki_exact_match': True}
        context = StageContext({}, lexicon)
        doc = tokenization.run_stage(from_text('Berlin.'))
        out = pos_tagging.run_stage(doc, context)
        self.assertEqual({'wikipedia_title_index': {'wiki_exact_match':
                                                    True}},
                         out['tokens'][0]['lexicon'])
        self.assertNotIn('lexicon', out['tokens'][1])
        lexicon.evidence.assert_called_once_with('Berlin')

    def test_no_tokens(self):
        "tagging needs tokens"
        self.assertViolation(pos_tagging.run_stage, from_text('Hi.'))

    def test_one_way_door(self):
        "refuses documents with annotations"
        doc = mk_doc('Hi/UH')
        doc['annotations'] = [mk_dep('t1', None, 'root')]
        self.assertViolation(pos_tagging.run_stage, doc)

# ---------------------------------------------------------------------
# multiword expressions
# ---------------------------------------------------------------------


class MweExtractionTest(StageTestCase):
    "stage 05"

    def matches(self, sentence):
        "`(surfaces, pattern ids)` found in a tagged sentence"
        doc = mk_doc(sentence)
        return [([t['surface'] for t in toks], ids)
                for toks, ids in mwe_extraction.find_matches(doc['tokens'])]

    def test_optional_elements(self):
        "backtracking over optional elements finds every end"
        tokens = mk_doc('buy/VB a/DT gift/NN for/IN Anna/NNP')['tokens']
        elements = dict(mwe_extraction.PATTERNS)['verb_object_pp']
        self.assertEqual([3, 5],
                         mwe_extraction.match_elements(elements, tokens, 0))

    def test_noun_phrases(self):
        "adjective noun"
        self.assertEqual([(['online', 'store'], ['adj_noun'])],
                         self.matches('online/JJ store/NN'))

    def test_merged_patterns(self):
        "patterns matching the same tokens make one candidate"
        self.assertEqual([(['buy', 'gifts'], ['verb_noun',
                                              'verb_object_pp'])],
                         self.matches('buy/VB gifts/NNS'))

    def test_weak_object(self):
        "verb-object candidates need a real object"
        self.assertEqual([], self.matches('help/VB customers/NNS'))

    def test_verb_to_verb(self):
        "only for a few second verbs"
        self.assertEqual([(['want', 'to', 'buy'], ['verb_to_verb'])],
                         self.matches('want/VBP to/TO buy/VB'))
        self.assertEqual([], self.matches('want/VBP to/TO run/VB'))

    def test_sentence_boundary(self):
        "matches stay within a sentence"
        doc = mwe_extraction.run_stage(mk_doc('Paris/NNP', 'London/NNP'))
        self.assertEqual([], of_kind(doc, 'mwe'))

    def test_run_stage(self):
        "candidates, labels without determiners, sources"
        doc = mwe_extraction.run_stage(mk_doc('Buy/VB the/DT book/NN'))
        [cand] = of_kind(doc, 'mwe')
        self.assertEqual('candidate', cand['status'])
        self.assertEqual('Buy book', cand['label'])
        self.assertEqual(['verb_det_noun', 'verb_object_pp'],
                         cand['pattern_ids'])
        self.assertEqual(['pattern-matcher/verb_det_noun',
                          'pattern-matcher/verb_object_pp',
                          'wikipedia-title-index'],
                         [s['name'] for s in cand['sources']])
        self.assertFalse(cand['sources'][-1]['evidence']['wiki_any_signal'])
        self.assertEqual('Buy the book',
                         find_selector(cand, QUOTE_SELECTOR)['exact'])
        self.assertEqual('mwe_candidates', doc['stage'])

    def test_order(self):
        "by start, then longest first"
        doc = mwe_extraction.run_stage(mk_doc('big/JJ red/JJ apple/NN'))
        self.assertEqual(['big red apple', 'red apple'],
                         [a['label'] for a in of_kind(doc, 'mwe')])

    def test_one_way_door(self):
        "refuses documents with mwe annotations"
        doc = mwe_extraction.run_stage(mk_doc('online/JJ store/NN'))
        self.assertViolation(mwe_extraction.run_stage, doc)


class MweConstructionTest(StageTestCase):
    "stage 06"

    def test_run_stage(self):
        "final ids and a construction source"
        doc = run_stages(mk_doc('Buy/VB the/DT book/NN'),
                         mwe_extraction, mwe_construction)
        [cand] = of_kind(doc, 'mwe')
        self.assertEqual(mk_id('mwe', {'key': 't1|t2|t3',
                                       'label': 'Buy book'}),
                         cand['id'])
        self.assertEqual('candidate-construction',
                         cand['sources'][-1]['name'])
        self.assertEqual('mwe_pattern_candidates', doc['stage'])

    def test_duplicates(self):
        "a second candidate over the same tokens is an observation"
        doc = mwe_extraction.run_stage(mk_doc('online/JJ store/NN'))
        dup = dict(of_kind(doc, 'mwe')[0])
        dup['id'] = 'mwe-candidate-dup'
        doc['annotations'].append(dup)
        out = mwe_construction.run_stage(doc)
        self.assertEqual(['candidate', 'observation'],
                         [a['status'] for a in of_kind(out, 'mwe')])

    def test_lexicon_source(self):
        "a default lexicon source is added when missing"
        doc = mwe_extraction.run_stage(mk_doc('online/JJ store/NN'))
        cand = of_kind(doc, 'mwe')[0]
        cand['sources'] = cand['sources'][:1]
        out = mwe_construction.run_stage(doc)
        self.assertEqual(['pattern-matcher/adj_noun',
                          'wikipedia-title-index',
                          'candidate-construction'],
                         [s['name'] for s in of_kind(out, 'mwe')[0]
                          ['sources']])

    def test_one_way_door(self):
        "refuses already constructed candidates"
        doc = run_stages(mk_doc('online/JJ store/NN'),
                         mwe_extraction, mwe_construction)
        self.assertViolation(mwe_construction.run_stage, doc)


class MweMaterializationTest(StageTestCase):
    "stage 07"

    def candidate(self, token_ids):
        "bare mwe candidate"
        return {'id': 'mwe-x', 'kind': 'mwe', 'status': 'candidate',
                'label': 'x',
                'anchor': {'selectors': [token_selector(token_ids)]},
                'sources': []}

    def test_run_stage(self):
        "candidates become accepted, with text anchors"
        doc = run_stages(mk_doc('Buy/VB the/DT book/NN'),
                         mwe_extraction, mwe_construction,
                         mwe_materialization)
        [mwe] = of_kind(doc, 'mwe')
        self.assertEqual('accepted', mwe['status'])
        self.assertEqual({'start': 0, 'end': 12},
                         find_selector(mwe, POSITION_SELECTOR)['span'])
        self.assertEqual({'name': 'mwe-materialization', 'kind': 'rule',
                          'evidence': {'rule': 'candidate_merge',
                                       'head_token_id': 't3',
                                       'token_count': 3}},
                         mwe['sources'][-1])
        self.assertEqual('mwe_materialized', doc['stage'])
        validate_document(doc)

    def test_bad_candidates(self):
        "unknown tokens, gaps and sentence crossings"
        doc = mk_doc('a/DT b/NN c/NN')
        doc['annotations'] = [self.candidate(['t1', 't9'])]
        self.assertViolation(mwe_materialization.run_stage, doc)
        doc['annotations'] = [self.candidate(['t1', 't3'])]
        self.assertViolation(mwe_materialization.run_stage, doc)
        doc = mk_doc('Paris/NNP', 'London/NNP')
        doc['annotations'] = [self.candidate(['t1', 't2'])]
        self.assertViolation(mwe_materialization.run_stage, doc)

    def test_one_way_door(self):
        "refuses materialized mwes"
        doc = run_stages(mk_doc('online/JJ store/NN'),
                         mwe_extraction, mwe_construction,
                         mwe_materialization)
        self.assertViolation(mwe_materialization.run_stage, doc)

# ---------------------------------------------------------------------
# analysis
# ---------------------------------------------------------------------


class LinguisticAnalysisTest(StageTestCase):
    "stage 08"

    def test_run_stage(self):
        "dependency backbone, lemmas, noun phrases, named entities"
        doc = linguistic_analysis.run_stage(
            mk_doc('Alice/NNP sees/VBZ Bob/NNP ./.'))
        deps = dict((d['dep']['id'], d) for d in of_kind(doc, 'dependency'))
        self.assertTrue(deps['t2']['is_root'])
        self.assertNotIn('head', deps['t2'])
        self.assertEqual('t2', deps['t1']['head']['id'])
        self.assertEqual('t2', deps['t3']['head']['id'])
        self.assertEqual(('punct', 't3'),
                         (deps['t4']['label'], deps['t4']['head']['id']))
        self.assertEqual(['alice', 'sees', 'bob'],
                         [a['lemma'] for a in of_kind(doc, 'lemma')])
        self.assertEqual(['Alice', 'Bob'],
                         [a['label'] for a in of_kind(doc, 'noun_phrase')])
        self.assertEqual(['Alice', 'Bob'],
                         [a['label'] for a in of_kind(doc, 'named_entity')])
        self.assertTrue(all(a['status'] == 'observation'
                            for a in doc['annotations']))
        self.assertEqual('parsed', doc['stage'])
        validate_document(doc)

    def test_one_way_door(self):
        "refuses documents with dependencies"
        doc = linguistic_analysis.run_stage(mk_doc('Hi/UH'))
        self.assertViolation(linguistic_analysis.run_stage, doc)

# ---------------------------------------------------------------------
# chunking
# ---------------------------------------------------------------------


class ChunkingTest(StageTestCase):
    "stage 09"

    def chunks(self, *sentences):
        "chunk summary for tagged sentences"
        return chunk_summary(chunking.run_stage(mk_doc(*sentences)))

    def test_pp_after_intransitive(self):
        "`to` is kept for infinitives, so its phrase is a PP"
        doc = chunking.run_stage(mk_doc('Ships/VBZ to/TO Berlin/NNP'))
        self.assertEqual([('VP', 'Ships'), ('PP', 'to Berlin')],
                         chunk_summary(doc))
        self.assertEqual('directional', of_kind(doc, 'chunk')[1]['pp_kind'])

    def test_coverage(self):
        "chunks partition a sentence without punctuation"
        doc = chunking.run_stage(mk_doc(
            'The/DT big/JJ dog/NN chased/VBD a/DT cat/NN '
            'in/IN the/DT garden/NN'))
        self.assertEqual([('NP', 'The big dog'),
                          ('VP', 'chased a cat'),
                          ('PP', 'in the garden')],
                         chunk_summary(doc))
        covered = [t for c in of_kind(doc, 'chunk')
                   for t in selector_token_ids(c)]
        self.assertEqual([t['id'] for t in doc['tokens']], covered)
        self.assertEqual('chunked', doc['stage'])
        validate_document(doc)

    def test_vp_absorbs_pp(self):
        "a PP joins the VP unless its preposition is denied"
        self.assertEqual([('VP', 'talked about the plan')],
                         self.chunks('talked/VBD about/IN the/DT plan/NN'))
        self.assertEqual([('VP', 'waited'), ('PP', 'for the bus')],
                         self.chunks('waited/VBD for/IN the/DT bus/NN'))

    def test_infinitive(self):
        "to + verb continues the VP"
        self.assertEqual([('VP', 'wants to buy a car')],
                         self.chunks('wants/VBZ to/TO buy/VB a/DT car/NN'))

    def test_coordinator(self):
        "coordinators and punctuation are O chunks"
        self.assertEqual([('NP', 'cats'), ('O', 'and'), ('NP', 'dogs'),
                          ('O', '.')],
                         self.chunks('cats/NNS and/CC dogs/NNS ./.'))

    def test_verb_complex(self):
        "a VP needs a lexical verb, and wins ties with an NP"
        self.assertEqual([('NP', 'The car'), ('O', 'is'), ('O', 'red')],
                         self.chunks('The/DT car/NN is/VBZ red/JJ'))
        self.assertEqual([('VP', 'Generated primes')],
                         self.chunks('Generated/VBN primes/NNS'))
        self.assertEqual([('NP', 'Bob'), ('VP', 'will leave')],
                         self.chunks('Bob/NNP will/MD leave/VB'))

    def test_noun_mwe(self):
        "noun-like multiword expressions count as one noun"
        doc = mk_doc('use/VB the/DT credit/NN card/NN')
        doc['annotations'] = [{
            'id': 'mwe-1', 'kind': 'mwe', 'status': 'accepted',
            'label': 'credit card', 'pattern_ids': ['noun_noun'],
            'anchor': {'selectors': [token_selector(['t3', 't4'])]},
            'sources': []}]
        out = chunking.run_stage(doc)
        [chunk] = of_kind(out, 'chunk')
        self.assertEqual(('VP', 'use the credit card'),
                         (chunk['chunk_type'], chunk['label']))
        self.assertEqual({'pattern': 'VP', 'mwe_units': 1},
                         chunk['sources'][0]['evidence'])

    def test_noun_mwes_by_segment(self):
        "noun-like expressions are grouped by sentence, leftmost first"
        doc = mk_doc('big/JJ data/NN center/NN', 'credit/NN card/NN')

        def mwe(ann_id, token_ids):
            "accepted noun multiword expression"
            return {'id': ann_id, 'kind': 'mwe', 'status': 'accepted',
                    'pattern_ids': ['noun_noun'],
                    'anchor': {'selectors': [token_selector(token_ids)]},
                    'sources': []}
        doc['annotations'] = [mwe('mwe-1', ['t2', 't3']),
                              mwe('mwe-2', ['t1', 't2']),
                              mwe('mwe-3', ['t4', 't5'])]
        found = chunking.noun_mwes(doc)
        self.assertEqual({'s1': [['t1', 't2']], 's2': [['t4', 't5']]},
                         dict((sid, [[t['id'] for t in run] for run in runs])
                              for sid, runs in found.items()))

    def test_one_way_door(self):
        "refuses documents with chunks"
        doc = chunking.run_stage(mk_doc('Hi/UH'))
        self.assertViolation(chunking.run_stage, doc)

# ---------------------------------------------------------------------
# heads
# ---------------------------------------------------------------------


class HeadIdentificationTest(StageTestCase):
    "stage 10"

    def test_run_stage(self):
        "one head per chunk"
        doc = run_stages(mk_doc('The/DT big/JJ dog/NN chased/VBD a/DT '
                                'cat/NN in/IN the/DT garden/NN'),
                         linguistic_analysis, chunking,
                         head_identification)
        chunks = dict((c['id'], c) for c in of_kind(doc, 'chunk'))
        heads = of_kind(doc, 'chunk_head')
        self.assertEqual(len(chunks), len(heads))
        self.assertEqual(sorted(chunks),
                         sorted(h['chunk_id'] for h in heads))
        self.assertEqual({'The big dog': 'dog',
                          'chased a cat': 'chased',
                          'in the garden': 'in'},
                         dict((chunks[h['chunk_id']]['label'], h['label'])
                              for h in heads))
        for head in heads:
            self.assertEqual(1, len(selector_token_ids(head)))
        by_label = dict((chunks[h['chunk_id']]['label'], h) for h in heads)
        self.assertEqual({'candidates': ['t3'], 'chosen': 't3',
                          'rule': 'positional_fallback',
                          'tie_break': {'index': 2}},
                         by_label['The big dog']['head_decision'])
        self.assertEqual('dependency_root',
                         by_label['chased a cat']['head_decision']['rule'])
        self.assertEqual({}, by_label['chased a cat']['head_decision']
                         ['tie_break'])
        self.assertEqual('heads_identified', doc['stage'])
        validate_document(doc)

    def test_lexical_override(self):
        "an auxiliary head gives way to the lexical verb"
        tokens = mk_doc('is/VBZ running/VBG')['tokens']
        head, decision, notes = head_identification.select_head(
            'VP', tokens, tokens, {})
        self.assertEqual('running', head['surface'])
        self.assertEqual({'candidates': ['t2'], 'chosen': 't2',
                          'rule': 'vp_lexical_override',
                          'tie_break': {'index': 1}},
                         decision)
        self.assertEqual('vp_lexical_override=true', notes)

    def test_matrix_preference(self):
        "with dependencies, the best connected lexical verb wins"
        tokens = mk_doc('was/VBD asked/VBN leave/VB')['tokens']
        edges = {'t1': (None, True),
                 't2': ('t1', False),
                 't3': ('t2', False)}
        head, decision, notes = head_identification.select_head(
            'VP', tokens, tokens, edges)
        self.assertEqual('asked', head['surface'])
        self.assertEqual('matrix_lexical_preference', decision['rule'])
        self.assertEqual({'degree': 2, 'index': 1}, decision['tie_break'])
        self.assertEqual('vp_matrix_lexical_preference=true', notes)

    def test_fallbacks(self):
        "modal-only VPs and noun-less NPs"
        tokens = mk_doc('can/MD')['tokens']
        head, decision, notes = head_identification.select_head(
            'VP', tokens, tokens, {})
        self.assertEqual(('can', 'positional_fallback', None),
                         (head['surface'], decision['rule'], notes))
        tokens = mk_doc('the/DT')['tokens']
        _, decision, _ = head_identification.select_head(
            'NP', tokens, tokens, {})
        self.assertEqual('allow_any_fallback', decision['rule'])

    def test_demotion(self):
        "preposition-like verbs and modifier participles"
        sentence = mk_doc('a/DT given/VBN value/NN using/VBG the/DT '
                          'printed/VBN sees/VBZ')['tokens']
        demoted = [t['surface'] for t in sentence
                   if head_identification.is_demoted(t, sentence)]
        self.assertEqual(['given', 'using', 'printed'], demoted)

    def test_one_way_door(self):
        "refuses documents with chunk heads"
        doc = run_stages(mk_doc('Hi/UH'), chunking, head_identification)
        self.assertViolation(head_identification.run_stage, doc)

# ---------------------------------------------------------------------
# relations
# ---------------------------------------------------------------------


class RelationExtractionTest(StageTestCase):
    "stage 11"

    def relations(self, doc):
        "relation summary after the chunk stages"
        return relation_summary(run_stages(doc,
                                           chunking,
                                           head_identification,
                                           relation_extraction))

    def test_chunk_fallback(self):
        "roles read off chunks when dependencies say nothing"
        doc = run_stages(mk_doc('Alice/NNP sees/VBZ Bob/NNP in/IN '
                                'Berlin/NNP ./.'),
                         linguistic_analysis, chunking,
                         head_identification, relation_extraction)
        self.assertEqual([('actor', 'sees', 'Alice'),
                          ('theme', 'sees', 'Bob'),
                          ('location', 'sees', 'Berlin')],
                         relation_summary(doc))
        self.assertEqual('relations_extracted', doc['stage'])
        validate_document(doc)

    def test_relation_shape(self):
        "anchors, source and evidence"
        doc = run_stages(mk_doc('Alice/NNP sees/VBZ Bob/NNP'),
                         linguistic_analysis, chunking,
                         head_identification, relation_extraction)
        rel = [r for r in of_kind(doc, 'dependency')
               if r['status'] == 'accepted'][0]
        self.assertTrue(rel['id'].startswith('rel-'))
        self.assertFalse(rel['is_root'])
        self.assertEqual(['t2', 't1'], selector_token_ids(rel))
        self.assertEqual('Alice', find_selector(rel, QUOTE_SELECTOR)['exact'])
        self.assertEqual({'start': 0, 'end': 5},
                         find_selector(rel, POSITION_SELECTOR)['span'])
        self.assertEqual({'name': 'relation-extraction', 'kind': 'rule',
                          'evidence': {'pattern': 'chunk_np_before_vp',
                                       'sentence_id': 's1'}},
                         rel['sources'][0])

    def test_modality(self):
        "modals inside the VP"
        doc = linguistic_analysis.run_stage(mk_doc('Bob/NNP can/MD sing/VB'))
        self.assertEqual([('actor', 'sing', 'Bob'),
                          ('modality', 'sing', 'can')],
                         self.relations(doc))

    def test_coordination(self):
        "VPs joined by a coordinator"
        doc = linguistic_analysis.run_stage(
            mk_doc('Anna/NNP sings/VBZ and/CC dances/VBZ'))
        self.assertEqual([('actor', 'sings', 'Anna'),
                          ('coordination', 'sings', 'dances')],
                         self.relations(doc))

    def test_dependency_labels(self):
        "direct labels, modal auxiliaries and preposition chains"
        doc = mk_doc('Anna/NNP can/MD read/VB books/NNS in/IN Paris/NNP')
        doc['annotations'] = [mk_dep('t3', None, 'root'),
                              mk_dep('t1', 't3', 'nsubj'),
                              mk_dep('t2', 't3', 'aux'),
                              mk_dep('t4', 't3', 'dobj'),
                              mk_dep('t5', 't3', 'prep'),
                              mk_dep('t6', 't5', 'pobj')]
        out = relation_extraction.run_stage(doc)
        self.assertEqual([('actor', 'read', 'Anna'),
                          ('modality', 'read', 'can'),
                          ('theme', 'read', 'books'),
                          ('location', 'read', 'Paris')],
                         relation_summary(out))
        location = [a for a in out['annotations']
                    if a.get('label') == 'location'][0]
        self.assertEqual({'pattern': 'preposition_chain',
                          'prep_surface': 'in',
                          'sentence_id': 's1'},
                         location['sources'][0]['evidence'])

    def test_clausal_labels(self):
        "complement clauses and coordination between verbs"
        doc = mk_doc('Anna/NNP wants/VBZ to/TO leave/VB and/CC sings/VBZ')
        doc['annotations'] = [mk_dep('t2', None, 'root'),
                              mk_dep('t1', 't2', 'nsubj'),
                              mk_dep('t3', 't4', 'aux'),
                              mk_dep('t4', 't2', 'xcomp'),
                              mk_dep('t5', 't2', 'cc'),
                              mk_dep('t6', 't2', 'conj')]
        self.assertEqual([('actor', 'wants', 'Anna'),
                          ('complement_clause', 'wants', 'leave'),
                          ('coordination', 'wants', 'sings')],
                         relation_summary(relation_extraction.run_stage(doc)))

    def test_predicates_are_chunk_heads(self):
        "a dependency on an auxiliary counts for its VP head"
        doc = mk_doc('Alice/NNP has/VBZ seen/VBN Bob/NNP')
        doc['annotations'] = [mk_dep('t3', None, 'root'),
                              mk_dep('t1', 't2', 'nsubj'),
                              mk_dep('t2', 't3', 'aux'),
                              mk_dep('t4', 't3', 'dobj')]
        self.assertEqual([('actor', 'seen', 'Alice'),
                          ('theme', 'seen', 'Bob')],
                         self.relations(doc))

    def test_labels_disable_fallback(self):
        "informative dependencies take over from the chunk reading"
        doc = mk_doc('Alice/NNP sees/VBZ Bob/NNP')
        doc['annotations'] = [mk_dep('t2', None, 'root'),
                              mk_dep('t1', 't2', 'nsubj'),
                              mk_dep('t3', 't2', 'dep')]
        self.assertEqual([('actor', 'sees', 'Alice')], self.relations(doc))

    def test_transparent_vp(self):
        "an auxiliary-only VP lends its modal to the next VP"
        tokens = mk_doc('Bob/NNP will/MD leave/VB')['tokens']
        sentence = relation_extraction.Sentence('s1')
        sentence.chunks = [
            relation_extraction.Chunk('NP', tokens[:1], tokens[0]),
            relation_extraction.Chunk('VP', tokens[1:2], tokens[1]),
            relation_extraction.Chunk('VP', tokens[2:], tokens[2])]
        collector = relation_extraction.Collector(
            dict((t['id'], t) for t in tokens))
        relation_extraction.chunk_relations(sentence, collector)
        self.assertEqual([('t3', 't1', 'actor'), ('t3', 't2', 'modality')],
                         [(p, a, r) for _, p, a, r, _ in collector.items])

    def test_collector(self):
        "duplicates, self links and sentence crossings are dropped"
        tokens = mk_doc('a/NN b/VB', 'c/NN')['tokens']
        collector = relation_extraction.Collector(
            dict((t['id'], t) for t in tokens))
        collector.add('s1', 't2', 't1', 'actor', {})
        collector.add('s1', 't2', 't1', 'actor', {'pattern': 'again'})
        collector.add('s1', 't2', 't2', 'theme', {})
        collector.add('s1', 't2', 't3', 'theme', {})
        collector.add('s1', 't2', 't1', None, {})
        self.assertEqual([('s1', 't2', 't1', 'actor', {'sentence_id': 's1'})],
                         collector.items)

    def test_deterministic(self):
        "same input, same output"
        doc = run_stages(mk_doc('Alice/NNP sees/VBZ Bob/NNP in/IN '
                                'Berlin/NNP'),
                         linguistic_analysis, chunking, head_identification)
        self.assertEqual(relation_extraction.run_stage(doc),
                         relation_extraction.run_stage(doc))

    def test_one_way_door(self):
        "refuses documents with extracted relations"
        doc = run_stages(mk_doc('Alice/NNP sees/VBZ Bob/NNP'),
                         linguistic_analysis, chunking,
                         head_identification, relation_extraction)
        self.assertViolation(relation_extraction.run_stage, doc)
