import os
import re
from typing import List, Dict, Tuple

from core.logger import logger

MAX_OPTIONS = 10
MAX_PROMPT_LENGTH = 300
MAX_OPTION_LENGTH = 100


class ParserError(Exception):
    """Raised when a catalog file cannot be turned into questions."""
    pass


def parse_catalog_file(file_path: str) -> Tuple[List[Dict], List[str]]:
    """Parse a .txt or .docx question catalog. Returns (questions, errors)."""
    ext = os.path.splitext(file_path)[1].lower()
    if ext == ".docx":
        return parse_docx_to_json(file_path)
    if ext in (".txt", ""):
        try:
            with open(file_path, encoding="utf-8") as f:
                lines = f.read().splitlines()
        except OSError as e:
            logger.error("Failed to read catalog file", path=file_path, error=str(e))
            raise ParserError(f"Cannot read {file_path}: {e}")
        return parse_lines_to_json(lines)
    raise ParserError(f"Unsupported catalog format: {ext}")


def parse_docx_to_json(file_path: str) -> Tuple[List[Dict], List[str]]:
    import docx

    try:
        doc = docx.Document(file_path)
    except Exception as e:
        logger.error("Failed to parse docx file", path=file_path, error=str(e))
        raise ParserError(f"Cannot open {file_path}: {e}")
    return parse_lines_to_json([para.text for para in doc.paragraphs])


def parse_lines_to_json(lines: List[str]) -> Tuple[List[Dict], List[str]]:
    """
    Line format:
        ?Question text
        +Correct option
        =Wrong option
    Continuation lines are appended to the previous question or option.
    Files containing '++++' separators are parsed as block format instead.
    """
    if any("++++" in text for text in lines):
        return _parse_block_format(lines)

    questions = []
    errors = []
    current = None
    start_line = 0

    def flush():
        if current is None:
            return
        try:
            validate_question(current, start_line)
            questions.append({k: current[k] for k in ("question", "options", "correct_option_id")})
        except ParserError as e:
            errors.append(str(e))

    for i, text in enumerate(lines, 1):
        text = text.strip()
        if not text:
            continue

        if text.startswith("?"):
            flush()
            current = {"question": text[1:].strip(), "options": [], "correct_option_id": None, "last": "q"}
            start_line = i
        elif text.startswith("+"):
            if current is None:
                continue
            if current["correct_option_id"] is not None:
                current["__error"] = f"Line {i}: more than one correct option (question at line {start_line})"
            current["correct_option_id"] = len(current["options"])
            current["options"].append(text[1:].strip())
            current["last"] = "o"
        elif text.startswith("="):
            if current is None:
                continue
            current["options"].append(text[1:].strip())
            current["last"] = "o"
        elif current is not None:
            if current["last"] == "q":
                current["question"] += " " + text
            elif current["options"]:
                current["options"][-1] += " " + text
        else:
            errors.append(f"Line {i}: text outside of a question")

    flush()

    if not questions and not errors:
        raise ParserError("No questions found")
    return questions, errors


def _parse_block_format(lines: List[str]) -> Tuple[List[Dict], List[str]]:
    """
    Block format:
        Question
        ====
        #Correct
        ====
        Wrong
        ++++
    """
    full_text = "\n".join(lines)
    blocks = [b for b in re.split(r"\n\+{4,}\s*\n?", full_text) if b.strip()]

    questions = []
    errors = []
    for i_blk, block in enumerate(blocks, 1):
        parts = [p.strip() for p in re.split(r"\n={4,}\s*\n?", block.strip()) if p.strip()]
        if len(parts) < 3:
            errors.append(f"Block {i_blk}: expected a question and at least two options")
            continue

        options = []
        correct = None
        try:
            for opt in parts[1:]:
                if opt.startswith("#"):
                    if correct is not None:
                        raise ParserError(f"Block {i_blk}: more than one correct option")
                    correct = len(options)
                    opt = opt[1:].strip()
                options.append(opt)

            q = {"question": parts[0], "options": options, "correct_option_id": correct}
            validate_question(q, i_blk)
            questions.append(q)
        except ParserError as e:
            errors.append(str(e))

    if not questions and not errors:
        raise ParserError("No questions found")
    return questions, errors


def validate_question(q: Dict, line_num: int):
    """Ensures a question has text, 2..10 options and exactly one correct option."""
    if "__error" in q:
        raise ParserError(q["__error"])
    if not q["question"]:
        raise ParserError(f"Line {line_num}: empty question")
    if len(q["options"]) < 2:
        raise ParserError(f"Line {line_num}: '{q['question'][:20]}...' has {len(q['options'])} option(s), at least 2 required")
    if len(q["options"]) > MAX_OPTIONS:
        raise ParserError(f"Line {line_num}: {len(q['options'])} options, at most {MAX_OPTIONS} allowed")
    if q["correct_option_id"] is None:
        raise ParserError(f"Line {line_num}: '{q['question'][:20]}...' has no correct option")
    if len(q["question"]) > MAX_PROMPT_LENGTH:
        raise ParserError(f"Line {line_num}: question is {len(q['question'])} characters, limit is {MAX_PROMPT_LENGTH}")
    for opt in q["options"]:
        if not opt:
            raise ParserError(f"Line {line_num}: empty option")
        if len(opt) > MAX_OPTION_LENGTH:
            raise ParserError(f"Line {line_num}: option '{opt[:20]}...' is {len(opt)} characters, limit is {MAX_OPTION_LENGTH}")
