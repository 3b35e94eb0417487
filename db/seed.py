from typing import Dict, List

from core.config import settings
from core.logger import logger
from utils.parser import parse_catalog_file, ParserError

BASE_QUESTIONS = [
    {
        "question": "Mi Magyarország fővárosa?",
        "options": ["Budapest", "Debrecen", "Szeged", "Pécs"],
        "correct_option_id": 0,
    },
    {
        "question": "Melyik évben volt a magyar forradalom?",
        "options": ["1848", "1914", "1956", "1945"],
        "correct_option_id": 0,
    },
    {
        "question": "Mi a magyar nemzeti ital?",
        "options": ["Pálinka", "Sör", "Bor", "Kávé"],
        "correct_option_id": 0,
    },
    {
        "question": "Ki volt Szent István?",
        "options": ["Magyarország első királya", "Festő", "Író", "Zenész"],
        "correct_option_id": 0,
    },
    {
        "question": "Mi a Hortobágy?",
        "options": ["Nemzeti park", "Város", "Tó", "Folyó"],
        "correct_option_id": 0,
    },
]

DEFAULT_CATALOG_SIZE = 100


def default_catalog(size: int = DEFAULT_CATALOG_SIZE) -> List[Dict]:
    """Built-in catalog: the base questions repeated with a round number, ids 1..size."""
    catalog = []
    round_no = 0
    while len(catalog) < size:
        round_no += 1
        for q in BASE_QUESTIONS:
            if len(catalog) >= size:
                break
            catalog.append({
                "id": len(catalog) + 1,
                "prompt": f"{q['question']} ({round_no})",
                "options": list(q["options"]),
                "correct_option_index": q["correct_option_id"],
            })
    return catalog


def catalog_from_parsed(parsed: List[Dict]) -> List[Dict]:
    return [
        {
            "id": i,
            "prompt": q["question"],
            "options": list(q["options"]),
            "correct_option_index": q["correct_option_id"],
        }
        for i, q in enumerate(parsed, 1)
    ]


def load_catalog(path: str = None) -> List[Dict]:
    """Catalog from SEED_FILE when configured, otherwise the built-in one."""
    path = path if path is not None else settings.SEED_FILE
    if not path:
        return default_catalog()

    parsed, errors = parse_catalog_file(path)
    for err in errors:
        logger.warning("Skipped catalog entry", path=path, error=err)
    if not parsed:
        raise ParserError(f"No valid questions in {path}")
    logger.info("Catalog parsed", path=path, questions=len(parsed), skipped=len(errors))
    return catalog_from_parsed(parsed)
