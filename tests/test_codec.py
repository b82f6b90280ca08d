import os
import random
import shutil
import tempfile
import unittest

from wordchain import codec
from wordchain.chain import END_TEXT, START_TEXT, MarkovChain

CORPUS = (
    "The cat sat on the mat. The dog ran to the park. "
    "A bird sang in the tree. The cat chased the bird."
)

SINGLE_WORD_FILE = (
    # header
    "\x11\n1\n"
    "\x12\n2\n"
    "A\n3\n"
    "\n"
    # body
    "\x11\n1\nA\n1\n0\n\n"
    "\x12\n1\nA\n0\n1\n\n"
    "A\n1\n\x11\n0\n1\n\x12\n1\n0\n\n"
)


def snapshot(chain):
    """Comparable view of a chain: text -> (id, occurrences, {neighbour text: (post, pre)})."""
    view = {}
    for word in chain.words():
        links = {
            chain.word_by_id(nid).text: (link.postfix_occurrences, link.prefix_occurrences)
            for nid, link in word.links.items()
        }
        view[word.text] = (word.id, word.occurrences, links)
    return view


class TestCodecFormat(unittest.TestCase):
    def test_dumps_layout(self):
        chain = MarkovChain()
        chain.add_text("A.")
        self.assertEqual(codec.dumps(chain), SINGLE_WORD_FILE)

    def test_empty_chain_layout(self):
        self.assertEqual(codec.dumps(MarkovChain()), "\x11\n1\n\x12\n2\n\n\x11\n0\n\n\x12\n0\n\n")

    def test_loads_layout(self):
        chain = MarkovChain()
        chain._reset()
        result = codec.loads(chain, SINGLE_WORD_FILE)

        self.assertTrue(result.ok)
        self.assertEqual((result.header_words, result.body_words), (3, 3))
        self.assertEqual(chain.start.id, 1)
        self.assertEqual(chain.end.id, 2)
        self.assertEqual(chain.generate(5), "A")


class TestRoundTrip(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.path = os.path.join(self.tmp, "chain.txt")

    def tearDown(self):
        shutil.rmtree(self.tmp)

    def test_structural_and_byte_identity(self):
        chain = MarkovChain()
        chain.add_text(CORPUS)
        self.assertTrue(chain.save(self.path))

        loaded = MarkovChain(self.path)
        self.assertEqual(snapshot(loaded), snapshot(chain))
        self.assertEqual(codec.dumps(loaded), codec.dumps(chain))

        with open(self.path, encoding="utf-8", newline="\n") as fp:
            self.assertEqual(fp.read(), codec.dumps(chain))

    def test_sentinels_rebound(self):
        chain = MarkovChain()
        chain.add_text(CORPUS)
        chain.save(self.path)

        loaded = MarkovChain()
        self.assertTrue(loaded.load(self.path).ok)
        self.assertIs(loaded.start, loaded.get_word(START_TEXT))
        self.assertIs(loaded.end, loaded.get_word(END_TEXT))
        self.assertEqual(loaded.start.id, chain.start.id)

    def test_loaded_chain_generates_same_text(self):
        chain = MarkovChain(rng=random.Random(5))
        chain.add_text(CORPUS)
        chain.save(self.path)
        loaded = MarkovChain(self.path, rng=random.Random(5))
        self.assertEqual(
            [chain.generate(10) for _ in range(10)],
            [loaded.generate(10) for _ in range(10)],
        )

    def test_new_ids_continue_after_loaded_ones(self):
        with open(self.path, "w", encoding="utf-8", newline="\n") as fp:
            fp.write("\x11\n1\n\x12\n2\nA\n40\n\n")

        chain = MarkovChain(self.path)
        chain.add_text("B.")
        self.assertEqual(chain.get_word("B").id, 41)

    def test_load_replaces_existing_words(self):
        chain = MarkovChain()
        chain.add_text("A.")
        chain.save(self.path)

        other = MarkovChain()
        other.add_text("Something else entirely.")
        other.load(self.path)
        self.assertEqual(snapshot(other), snapshot(chain))


class TestDegradedIO(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp)

    def test_load_missing_file_leaves_chain_alone(self):
        chain = MarkovChain()
        before = snapshot(chain)
        result = chain.load(os.path.join(self.tmp, "missing.txt"))
        self.assertFalse(result.opened)
        self.assertFalse(result.ok)
        self.assertEqual(snapshot(chain), before)

    def test_load_missing_file_keeps_trained_words(self):
        chain = MarkovChain()
        chain.add_text(CORPUS)
        before = snapshot(chain)
        chain.load(os.path.join(self.tmp, "missing.txt"))
        self.assertEqual(snapshot(chain), before)

    def test_save_to_unopenable_path(self):
        chain = MarkovChain()
        chain.add_text(CORPUS)
        before = snapshot(chain)
        target = os.path.join(self.tmp, "no", "such", "dir", "chain.txt")
        self.assertFalse(chain.save(target))
        self.assertFalse(os.path.exists(target))
        self.assertEqual(snapshot(chain), before)

    def test_save_overwrites(self):
        path = os.path.join(self.tmp, "chain.txt")
        with open(path, "w") as fp:
            fp.write("junk\n" * 100)
        chain = MarkovChain()
        chain.add_text("A.")
        self.assertTrue(chain.save(path))
        with open(path, encoding="utf-8", newline="\n") as fp:
            self.assertEqual(fp.read(), SINGLE_WORD_FILE)

    def test_truncated_body_is_partial(self):
        chain = MarkovChain()
        chain._reset()
        # cut inside the link block of the last word
        result = codec.loads(chain, SINGLE_WORD_FILE[:-8])

        self.assertTrue(result.opened)
        self.assertFalse(result.complete)
        self.assertEqual(result.header_words, 3)
        self.assertEqual(result.body_words, 2)
        self.assertEqual(chain.get_word("A").occurrences, 1)

    def test_bad_header_id_stops_header(self):
        chain = MarkovChain()
        chain._reset()
        result = codec.loads(chain, "\x11\n1\n\x12\nnot-a-number\nA\n3\n\n")

        self.assertFalse(result.complete)
        self.assertEqual(result.header_words, 1)
        self.assertEqual(result.body_words, 0)
        # end was missing from the header and is recreated
        self.assertIs(chain.end, chain.get_word(END_TEXT))
        self.assertNotEqual(chain.end.id, chain.start.id)
        self.assertIsNone(chain.get_word("A"))

    def test_unknown_body_word_stops_body(self):
        chain = MarkovChain()
        chain._reset()
        text = "\x11\n1\n\x12\n2\n\nghost\n3\n\n\x11\n0\n\n"
        result = codec.loads(chain, text)

        self.assertFalse(result.complete)
        self.assertEqual(result.header_words, 2)
        self.assertEqual(result.body_words, 0)

    def test_partial_chain_still_usable(self):
        path = os.path.join(self.tmp, "chain.txt")
        with open(path, "w", encoding="utf-8", newline="\n") as fp:
            fp.write(SINGLE_WORD_FILE[:6])

        chain = MarkovChain(path)
        self.assertEqual(chain.generate(5), "")
        chain.add_text("Still works.")
        self.assertEqual(chain.generate(5), "Still works")


if __name__ == '__main__':
    unittest.main()
