"""
linguistic-enricher setup: deterministic linguistic enrichment of
text into annotated, validated seed documents
"""

from setuptools import setup, find_packages
import glob
import os

REQS = [
    'frozendict',
    'jsonschema >= 4.0',
    'nltk >= 3.9',
    'requests',
    'tabulate',
]

TEST_REQS = [
    'pytest',
]


setup(name='linguistic-enricher',
      version='0.1',
      packages=find_packages(),
      package_data={'linguistic_enricher': ['data/*.lex'],
                    'linguistic_enricher.validation': ['*.schema.json']},
      scripts=[f for f in glob.glob('scripts/*') if not os.path.isdir(f)],
      install_requires=REQS,
      extras_require={'test': TEST_REQS})
