import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, BackgroundTasks, HTTPException
from pydantic import BaseModel, Field

from wordchain.direction import Direction

from .chain_store import ChainStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s')

logger = logging.getLogger(__name__)

app = FastAPI(title="wordchain: Markov sentence generator")

# -----------------------
# Paths & defaults
# -----------------------
MODELS_DIR = Path("models")
CHAIN_PATH = MODELS_DIR / "chain.txt"
DEFAULT_ORDER = 1
DEFAULT_CORPUS = (
    "The Count of Monte Cristo is a novel written by Alexandre Dumas. "
    "The novel is about an innocent man who is imprisoned. "
    "He escapes from the prison and finds a hidden treasure. "
    "The man returns to take revenge on those who betrayed him."
)

# -----------------------
# Chain setup
# -----------------------
store = ChainStore(CHAIN_PATH, order=DEFAULT_ORDER)
if CHAIN_PATH.exists():
    store.load()
else:
    store.train(DEFAULT_CORPUS)

DIRECTIONS = {
    "prefix": Direction.PREFIX,
    "postfix": Direction.POSTFIX,
    "both": Direction.BOTH,
}

# -----------------------
# Request schemas
# -----------------------
class TextGenerationRequest(BaseModel):
    # seed sentence; free generation from the sentence start when omitted
    start_word: Optional[str] = None
    length: int = Field(20, ge=0)

class WordGenerationRequest(BaseModel):
    word: str
    direction: str = "both"
    length: int = Field(20, ge=0)

class TrainRequest(BaseModel):
    text: str

class TrainFileRequest(BaseModel):
    path: str

class ChainFileRequest(BaseModel):
    path: Optional[str] = None

class OrderRequest(BaseModel):
    order: int

# -----------------------
# Root & status
# -----------------------
@app.get("/")
def root():
    return {"status": "wordchain API Active"}

@app.get("/chain/status")
def chain_status():
    return store.status()

# -----------------------
# Generation
# -----------------------
@app.post("/generate")
@app.post("/generate_text")
def generate_text(req: TextGenerationRequest):
    try:
        if req.start_word:
            text = store.run(lambda chain: chain.generate_from_seed(req.start_word, req.length))
            mode = "seeded"
        else:
            text = store.run(lambda chain: chain.generate(req.length))
            mode = "free"
        return {"generated_text": text, "model": "markov", "mode": mode}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Markov generation failed: {e}")

@app.post("/generate_from_word")
def generate_from_word(req: WordGenerationRequest):
    direction = DIRECTIONS.get(req.direction.lower())
    if direction is None:
        raise HTTPException(
            status_code=400,
            detail=f"direction must be one of {sorted(DIRECTIONS)}",
        )

    def run(chain):
        seed = chain.get_word(req.word)
        if seed is None:
            return None
        return chain.generate_string(direction, seed, req.length)

    text = store.run(run)
    if text is None:
        raise HTTPException(status_code=404, detail=f"Unknown word: {req.word!r}")
    return {"generated_text": text, "model": "markov", "direction": req.direction.lower()}

def resolve_model_path(raw: Optional[str]) -> Optional[Path]:
    """
    Map a request path onto MODELS_DIR. Relative paths are taken from
    MODELS_DIR; anything resolving outside it is rejected with a 400.
    """
    if not raw:
        return None

    root = MODELS_DIR.resolve()
    path = Path(raw)
    if not path.is_absolute():
        path = MODELS_DIR / path
    resolved = path.resolve()
    try:
        resolved.relative_to(root)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Path must be inside {MODELS_DIR}: {raw}")
    return resolved

# -----------------------
# Training
# -----------------------
@app.post("/train")
def train(req: TrainRequest):
    sentences = store.train(req.text)
    return {"sentences": sentences, **store.status()}

@app.post("/train_file")
def train_file(req: TrainFileRequest, background_tasks: BackgroundTasks):
    corpus = resolve_model_path(req.path)
    if corpus is None:
        raise HTTPException(status_code=400, detail="A corpus path is required")
    if not corpus.is_file():
        raise HTTPException(status_code=404, detail=f"Corpus not found: {req.path}")

    def run():
        try:
            sentences = store.train_file(corpus)
            logger.info("[TRAIN] %d sentences from %s", sentences, corpus)
        except Exception as e:
            logger.error("[TRAIN] Failed on %s: %s", corpus, e)

    background_tasks.add_task(run)
    return {"status": "started", "corpus": str(corpus)}

# -----------------------
# Persistence & settings
# -----------------------
@app.post("/chain/save")
def save_chain(req: Optional[ChainFileRequest] = None):
    path = resolve_model_path(req.path if req else None) or store.path
    if not store.save(path):
        raise HTTPException(status_code=500, detail=f"Could not write chain to {path}")
    return {"status": "saved", "path": str(path)}

@app.post("/chain/load")
def load_chain(req: Optional[ChainFileRequest] = None):
    path = resolve_model_path(req.path if req else None) or store.path
    result = store.load(path)
    if not result.opened:
        raise HTTPException(status_code=409, detail=f"Could not open chain file {path}")
    return {
        "status": "loaded" if result.complete else "partial",
        "path": str(path),
        "header_words": result.header_words,
        "body_words": result.body_words,
    }

@app.post("/chain/clear")
def clear_chain():
    store.clear()
    return {"status": "cleared"}

@app.post("/chain/order")
def set_order(req: OrderRequest):
    try:
        store.run(lambda chain: chain.set_order(req.order))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"order": req.order}
