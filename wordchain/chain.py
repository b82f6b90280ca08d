import logging
import random
from collections import deque
from typing import Dict, List, Optional

from . import codec
from .codec import LoadResult
from .direction import Direction
from .tokenizer import split_sentences, tokenize
from .word import Word

logger = logging.getLogger(__name__)

START_TEXT = "\x11"
END_TEXT = "\x12"

SEED_ATTEMPTS = 5


class MarkovChain:
    """
    Word adjacency chain built from sentences.

    Words live in two maps owned by the chain: by text (the dictionary) and by
    id. Links between words only store ids, so nothing here forms a reference
    cycle. Not thread safe; callers sharing a chain must serialise access.
    """

    def __init__(self, path: Optional[str] = None, order: int = 1,
                 rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.order = 1
        self.set_order(order)

        self.dictionary: Dict[str, Word] = {}
        self._by_id: Dict[int, Word] = {}
        self._next_id = 1
        self.start: Word
        self.end: Word
        self._bind_terminators()

        if path is not None:
            self.load(path)

    # -----------------------
    # word storage
    # -----------------------
    def _add_word(self, text: str, word_id: Optional[int] = None) -> Word:
        if word_id is None:
            word_id = self._next_id
            self._next_id += 1
        elif word_id >= self._next_id:
            self._next_id = word_id + 1

        old = self.dictionary.get(text)
        if old is not None:
            self._by_id.pop(old.id, None)

        word = Word(word_id, text)
        self.dictionary[text] = word
        self._by_id[word_id] = word
        return word

    def _bind_terminators(self):
        start = self.dictionary.get(START_TEXT)
        end = self.dictionary.get(END_TEXT)
        self.start = start if start is not None else self._add_word(START_TEXT)
        self.end = end if end is not None else self._add_word(END_TEXT)

    def _reset(self):
        self.dictionary = {}
        self._by_id = {}
        self._next_id = 1

    def clear(self):
        """Drop every word and start over with fresh start/end sentinels."""
        self._reset()
        self._bind_terminators()

    def set_order(self, order: int):
        if order < 1:
            raise ValueError(f"order must be >= 1, got {order}")
        self.order = order

    def get_word(self, text: str) -> Optional[Word]:
        return self.dictionary.get(text)

    def word_by_id(self, word_id: int) -> Optional[Word]:
        return self._by_id.get(word_id)

    def words(self) -> List[Word]:
        return [self.dictionary[text] for text in sorted(self.dictionary)]

    def is_terminator(self, word: Word) -> bool:
        return word is self.start or word is self.end

    def __len__(self):
        return len(self.dictionary)

    def __contains__(self, text):
        return text in self.dictionary

    # -----------------------
    # corpus ingestion
    # -----------------------
    def add_text(self, text: str) -> int:
        """
        Feed period-delimited sentences into the chain. Counts accumulate
        across calls. Returns the number of sentences that produced words.
        """
        ingested = 0
        for sentence in split_sentences(text):
            tokens = tokenize(sentence, self.order)
            if not tokens:
                continue

            word = self.start
            word.add_occurrence()

            for token in tokens:
                next_word = self.dictionary.get(token)
                if next_word is None:
                    next_word = self._add_word(token)
                next_word.add_occurrence()

                word.add_postfix(next_word)
                next_word.add_prefix(word)
                word = next_word

            if word is not self.start:
                word.add_postfix(self.end)
                self.end.add_prefix(word)
                self.end.add_occurrence()

            ingested += 1

        logger.debug("Ingested %d sentences, dictionary now has %d words", ingested, len(self))
        return ingested

    # -----------------------
    # generation
    # -----------------------
    def random_postfix(self, word: Word) -> Optional[Word]:
        neighbor_id = word.get_random_postfix(self.rng)
        return None if neighbor_id is None else self.word_by_id(neighbor_id)

    def random_prefix(self, word: Word) -> Optional[Word]:
        neighbor_id = word.get_random_prefix(self.rng)
        return None if neighbor_id is None else self.word_by_id(neighbor_id)

    def generate_string(self, direction: Direction, seed: Word, max_words: int) -> str:
        """
        Grow a sentence outward from seed, backwards through prefixes and/or
        forwards through postfixes, until both walks hit a sentinel or
        max_words words have been added.
        """
        if max_words < 0:
            raise ValueError(f"max_words must be >= 0, got {max_words}")

        words = deque([seed])
        head = tail = seed
        start_reached = not (direction & Direction.PREFIX) or head is self.start
        end_reached = not (direction & Direction.POSTFIX) or tail is self.end

        count = 0
        while count < max_words and not (start_reached and end_reached):
            if not start_reached:
                head = self.random_prefix(head)
                if head is None:
                    start_reached = True
                else:
                    words.appendleft(head)
                    count += 1
                    start_reached = head is self.start

            if not end_reached:
                tail = self.random_postfix(tail)
                if tail is None:
                    end_reached = True
                else:
                    words.append(tail)
                    count += 1
                    end_reached = tail is self.end

        words.appendleft(self.start)
        words.append(self.end)

        return " ".join(w.text for w in words if not self.is_terminator(w))

    def generate_from_seed(self, sentence: str, max_words: int) -> str:
        """
        Pick a random word of sentence that the chain knows (a few tries) and
        grow a sentence around it in both directions. Falls back to start.
        """
        seed = None
        tokens = tokenize(sentence, self.order)
        if tokens:
            for _ in range(SEED_ATTEMPTS):
                seed = self.get_word(self.rng.choice(tokens))
                if seed is not None:
                    break

        if seed is None:
            seed = self.start
        return self.generate_string(Direction.BOTH, seed, max_words)

    def generate(self, max_words: int) -> str:
        return self.generate_string(Direction.POSTFIX, self.start, max_words)

    # -----------------------
    # persistence
    # -----------------------
    def save(self, path: str) -> bool:
        """Overwrite path with this chain. Returns False if it can't be opened."""
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as fp:
                codec.dump(self, fp)
        except OSError as e:
            logger.warning("Could not save chain to %s: %s", path, e)
            return False

        logger.info("Saved %d words to %s", len(self), path)
        return True

    def load(self, path: str) -> LoadResult:
        """
        Replace this chain with the one stored at path. A source that can't
        be opened leaves the chain as it was.
        """
        try:
            fp = open(path, "r", encoding="utf-8", errors="replace", newline="\n")
        except OSError as e:
            logger.warning("Could not load chain from %s: %s", path, e)
            return LoadResult(opened=False)

        with fp:
            self._reset()
            result = codec.load(self, fp)

        logger.info("Loaded %d words from %s", len(self), path)
        return result
