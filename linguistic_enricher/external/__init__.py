"""
Adapters around things we do not control: NLTK (sentence and word
splitting, part of speech tagging), the Wikipedia title index service,
and a Python worker process reached over a JSON protocol
"""
