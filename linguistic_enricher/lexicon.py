# License: BSD3

"""
Cheap and cheerful lexicon format for the closed-class words (and the
handful of irregular open-class words) that seed the part of speech
tagger. One entry per line, blanks ignored. Each entry associates

 * some word with
 * some kind of category (we call this a "lexical class")
 * a Penn Treebank part of speech tag
 * an optional subclass, blank if none

Here's an example with all four fields

    is:auxiliary:VBZ:be
    has:auxiliary:VBZ:have

and some without the notion of subclass

    the:determiner:DT:
    should:modal:MD:
"""

from collections import defaultdict, namedtuple
import codecs
import os

from frozendict import frozendict

LEXICON_FILE = os.path.join(os.path.dirname(__file__),
                            'data', 'closed_class.lex')

OPEN_CLASSES = frozenset(['verb', 'adjective', 'noun'])
"""
Lexical classes whose words we only know in lower case; a capitalised
occurrence is left for the tagger to decide (it may be a proper noun)
"""


class LexiconException(Exception):
    """
    Exceptions that arise when reading a lexicon file
    """
    def __init__(self, *args, **kw):
        super(LexiconException, self).__init__(*args, **kw)


class LexEntry(namedtuple("LexEntry",
                          "word lex_class pos subclass")):
    "a single entry in the lexicon"

    def __new__(cls, word, lex_class, pos, subclass):
        subclass = subclass or None
        return super(LexEntry, cls).__new__(
            cls, word, lex_class, pos, subclass)

    @classmethod
    def read_entry(cls, line):
        """
        Return a LexEntry given the string corresponding to an entry,
        or raise an exception if we can't parse it
        """
        fields = line.split(':')
        if len(fields) == 4:
            [word, lex_class, pos, subclass] = fields
            return cls(word, lex_class, pos, subclass or None)
        elif len(fields) == 3:
            [word, lex_class, pos] = fields
            return cls(word, lex_class, pos, None)
        else:
            oops = "Sorry, I didn't understand this lexicon entry: %s" % line
            raise LexiconException(oops)

    @classmethod
    def read_entries(cls, items):
        """
        Return a list of LexEntry given an iterable of entry strings, eg. the
        stream for the lines in a file. Blank entries are ignored
        """
        return [cls.read_entry(x.strip()) for x in items
                if len(x.strip()) > 0]


class LexClass(namedtuple("LexClass",
                          ["word_to_subclass",
                           "subclass_to_words"])):
    """
    Grouping together information for a single lexical class.
    Our assumption here is that a word belongs to at most one
    subclass
    """
    @classmethod
    def new_writable_instance(cls):
        """
        A brand new (empty) lex class
        """
        return cls({}, defaultdict(set))

    @classmethod
    def freeze(cls, other):
        """
        A frozen copy of a lex class
        """
        return LexClass(frozendict(other.word_to_subclass.items()),
                        frozendict((k, frozenset(v)) for k, v in
                                   other.subclass_to_words.items()))

    def just_words(self):
        """
        Any words associated with this lexical class
        """
        return frozenset(self.word_to_subclass.keys())


class Lexicon(namedtuple("Lexicon", "classes tags")):
    """
    All entries in a wordclass lexicon along with some helpers
    for convenient access

    :param classes: lexical class to `LexClass`
    :type classes: Dict String LexClass

    :param tags: word to part of speech tag
    :type tags: Dict String String
    """
    @classmethod
    def from_entries(cls, entries):
        """
        Build a lexicon from a sequence of `LexEntry`
        """
        maps = defaultdict(LexClass.new_writable_instance)
        tags = {}
        for ent in entries:
            lclass = maps[ent.lex_class]
            lclass.word_to_subclass[ent.word] = ent.subclass
            lclass.subclass_to_words[ent.subclass].add(ent.word)
            tags[ent.word] = ent.pos
            if ent.lex_class not in OPEN_CLASSES:
                tags.setdefault(ent.word.capitalize(), ent.pos)
                tags.setdefault(ent.word.upper(), ent.pos)
        return cls(frozendict((k, LexClass.freeze(v))
                              for k, v in maps.items()),
                   frozendict(tags))

    @classmethod
    def read_file(cls, filename):
        """
        Read the lexical entries in the file of the given name
        and return a Lexicon

        :: FilePath -> IO Lexicon
        """
        with codecs.open(filename, 'r', 'utf-8') as stream:
            return cls.from_entries(LexEntry.read_entries(stream))

    def words(self, lex_class, subclass=None):
        """
        Words of a lexical class (optionally restricted to one of
        its subclasses)
        """
        lclass = self.classes.get(lex_class)
        if lclass is None:
            return frozenset()
        elif subclass is None:
            return lclass.just_words()
        else:
            return lclass.subclass_to_words.get(subclass, frozenset())


LEXICON = Lexicon.read_file(LEXICON_FILE)

AUXILIARY_WORDS = LEXICON.words('auxiliary') | LEXICON.words('modal')
"""
Forms of be/have/do plus the modals (lower case)
"""

BE_HAVE_WORDS = LEXICON.words('auxiliary', 'be') |\
    LEXICON.words('auxiliary', 'have')
