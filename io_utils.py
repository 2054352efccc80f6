# io_utils.py

import json

PROMPT_LABEL = "query"
RESULT_LABEL = "=>"


def get_query_input() -> str:
    """
    Read one chain expression from the user.
    This is the *only* place where the CLI prompt string lives.
    """
    return input(f"{PROMPT_LABEL} > ").strip()


def print_result(value) -> None:
    """
    Print an evaluation result as JSON (results are plain values).
    """
    print(f"{RESULT_LABEL} {json.dumps(value, ensure_ascii=False)}\n")
