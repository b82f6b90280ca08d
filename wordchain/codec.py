"""
Text codec for a MarkovChain.

Layout (every field on its own line):

    header:  <text> <id>            for each word, lexical order by text
             <blank>
    body:    <text> <occurrences>   for each word, same order
             (<neighbour text> <postfix> <prefix>)*
             <blank>

Decoding is best effort: the first line that does not parse ends the pass
it belongs to and the chain keeps whatever was read up to that point.
"""
import io
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, TextIO

if TYPE_CHECKING:
    from .chain import MarkovChain

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    opened: bool = False
    header_words: int = 0
    body_words: int = 0
    complete: bool = False

    @property
    def ok(self) -> bool:
        return self.opened and self.complete


def _line_reader(fp: TextIO) -> Callable[[], Optional[str]]:
    # None marks end of input; "" is a blank line
    def read_line() -> Optional[str]:
        line = fp.readline()
        if line == "":
            return None
        return line[:-1] if line.endswith("\n") else line

    return read_line


def dump(chain: "MarkovChain", fp: TextIO):
    words = chain.words()

    for word in words:
        fp.write(f"{word.text}\n")
        fp.write(f"{word.id}\n")
    fp.write("\n")

    def text_of(word_id: int) -> Optional[str]:
        neighbor = chain.word_by_id(word_id)
        return neighbor.text if neighbor is not None else None

    for word in words:
        word.serialize(fp, text_of)


def dumps(chain: "MarkovChain") -> str:
    buf = io.StringIO()
    dump(chain, buf)
    return buf.getvalue()


def _read_header(chain: "MarkovChain", read_line, result: LoadResult) -> bool:
    while True:
        text = read_line()
        if text is None:
            return False
        if text == "":
            return True

        id_line = read_line()
        try:
            word_id = int(id_line)
        except (TypeError, ValueError):
            logger.warning("Bad id line %r for word %r", id_line, text)
            return False

        chain._add_word(text, word_id)
        result.header_words += 1


def _read_body(chain: "MarkovChain", read_line, result: LoadResult) -> bool:
    def id_of(text: str) -> Optional[int]:
        word = chain.get_word(text)
        return word.id if word is not None else None

    while True:
        text = read_line()
        if text is None:
            return True
        if text == "":
            continue

        word = chain.get_word(text)
        if word is None:
            logger.warning("Body references unknown word %r", text)
            return False
        if not word.unserialize(read_line, id_of):
            logger.warning("Truncated link block for word %r", text)
            return False
        result.body_words += 1


def load(chain: "MarkovChain", fp: TextIO) -> LoadResult:
    """
    Decode fp into chain, which is expected to be freshly cleared. The chain's
    start/end sentinels are re-bound once the header has been read.
    """
    result = LoadResult(opened=True)
    read_line = _line_reader(fp)

    header_ok = _read_header(chain, read_line, result)
    chain._bind_terminators()

    body_ok = header_ok and _read_body(chain, read_line, result)
    result.complete = header_ok and body_ok

    if not result.complete:
        logger.warning(
            "Partial chain load: %d header words, %d body words",
            result.header_words, result.body_words,
        )
    return result


def loads(chain: "MarkovChain", text: str) -> LoadResult:
    return load(chain, io.StringIO(text))
