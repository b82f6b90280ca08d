import logging
import threading
from pathlib import Path
from typing import Callable, Optional, TypeVar

from wordchain.chain import MarkovChain
from wordchain.codec import LoadResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChainStore:
    """
    Owns the service's single MarkovChain and serialises every access to it.
    FastAPI runs sync endpoints on a thread pool, the chain itself has no locking.
    """

    def __init__(self, path: Path, order: int = 1, chain: Optional[MarkovChain] = None):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._chain = chain if chain is not None else MarkovChain(order=order)

    def run(self, fn: Callable[[MarkovChain], T]) -> T:
        with self._lock:
            return fn(self._chain)

    def train(self, text: str) -> int:
        return self.run(lambda chain: chain.add_text(text))

    def train_file(self, corpus_path: Path) -> int:
        text = Path(corpus_path).read_text(encoding="utf-8", errors="replace")
        # newlines inside a sentence are just whitespace
        return self.train(text.replace("\n", " "))

    def save(self, path: Optional[Path] = None) -> bool:
        target = Path(path) if path else self.path
        if target.parent == self.path.parent:
            self.path.parent.mkdir(exist_ok=True)
        return self.run(lambda chain: chain.save(str(target)))

    def load(self, path: Optional[Path] = None) -> LoadResult:
        source = Path(path) if path else self.path
        return self.run(lambda chain: chain.load(str(source)))

    def clear(self):
        self.run(lambda chain: chain.clear())

    def status(self) -> dict:
        def collect(chain: MarkovChain) -> dict:
            return {
                "words": len(chain) - 2,
                "sentences": chain.start.occurrences,
                "order": chain.order,
            }

        info = self.run(collect)
        info.update({"path": str(self.path), "saved": self.path.exists()})
        return info
