import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, TextIO

from .direction import Direction


@dataclass
class WordLink:
    """Directional counts between a word and one of its neighbours."""

    neighbor_id: int
    prefix_occurrences: int = 0
    postfix_occurrences: int = 0

    def count(self, direction: Direction) -> int:
        if direction == Direction.PREFIX:
            return self.prefix_occurrences
        return self.postfix_occurrences


@dataclass
class Word:
    """
    A node of the chain. Neighbours are referenced by id only; resolving an id
    back to a Word is the chain's job.
    """

    id: int
    text: str
    occurrences: int = 0
    links: Dict[int, WordLink] = field(default_factory=dict)

    def add_occurrence(self):
        self.occurrences += 1

    def _link(self, other: "Word") -> WordLink:
        link = self.links.get(other.id)
        if link is None:
            link = WordLink(other.id)
            self.links[other.id] = link
        return link

    def add_postfix(self, other: "Word"):
        self._link(other).postfix_occurrences += 1

    def add_prefix(self, other: "Word"):
        self._link(other).prefix_occurrences += 1

    def postfix_total(self) -> int:
        return sum(link.postfix_occurrences for link in self.links.values())

    def prefix_total(self) -> int:
        return sum(link.prefix_occurrences for link in self.links.values())

    def get_random(self, direction: Direction, rng: Optional[random.Random] = None) -> Optional[int]:
        """
        Weighted choice of a neighbour id in the given direction, or None when
        there is nothing to choose from.

        r is drawn from [0, occurrences) and links are scanned in id order;
        the first link whose count exceeds what is left of r wins.
        """
        if not self.links or self.occurrences <= 0:
            return None

        rng = rng or random
        r = rng.randrange(self.occurrences)

        for neighbor_id in sorted(self.links):
            count = self.links[neighbor_id].count(direction)
            if count <= 0:
                continue
            # strict: r <= count would give the first link one extra draw
            if r < count:
                return neighbor_id
            r -= count

        # occurrences larger than the directional total (e.g. end has no postfixes)
        return None

    def get_random_postfix(self, rng: Optional[random.Random] = None) -> Optional[int]:
        return self.get_random(Direction.POSTFIX, rng)

    def get_random_prefix(self, rng: Optional[random.Random] = None) -> Optional[int]:
        return self.get_random(Direction.PREFIX, rng)

    def serialize(self, fp: TextIO, text_of: Callable[[int], Optional[str]]):
        """
        Write this word's body block: text, occurrences, then one
        (neighbour text, postfix, prefix) triple per link, then a blank line.
        """
        fp.write(f"{self.text}\n")
        fp.write(f"{self.occurrences}\n")
        for neighbor_id in sorted(self.links):
            link = self.links[neighbor_id]
            neighbor_text = text_of(neighbor_id)
            if not neighbor_text:
                continue
            fp.write(f"{neighbor_text}\n")
            fp.write(f"{link.postfix_occurrences}\n")
            fp.write(f"{link.prefix_occurrences}\n")
        fp.write("\n")

    def unserialize(self, read_line: Callable[[], Optional[str]],
                    id_of: Callable[[str], Optional[int]]) -> bool:
        """
        Rebuild occurrences and links from the lines following this word's
        text. Returns False if the block stopped early on bad or missing data.
        """
        line = read_line()
        try:
            self.occurrences = int(line)
        except (TypeError, ValueError):
            return False

        links = {}
        ok = True
        while True:
            neighbor_text = read_line()
            if neighbor_text is None:
                ok = False
                break
            if neighbor_text == "":
                break

            neighbor_id = id_of(neighbor_text)
            if neighbor_id is None:
                ok = False
                break
            try:
                postfix = int(read_line())
                prefix = int(read_line())
            except (TypeError, ValueError):
                ok = False
                break
            links[neighbor_id] = WordLink(neighbor_id, prefix_occurrences=prefix,
                                          postfix_occurrences=postfix)

        self.links = links
        return ok
