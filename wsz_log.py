import os

from typing import Callable, List, NamedTuple


class Logger(NamedTuple):
    append: Callable[[str], None]
    contents: Callable[[], List[str]]


def start_log(*, echo: bool = True) -> Logger:
    output = []

    def append(s: str):
        output.append(s)
        if echo:
            print(s)

    def contents() -> List[str]:
        return output

    return Logger(append=append, contents=contents)


def save_log(*, outdir, logger: Logger):
    log_filename = os.path.join(outdir, "_wsz_tool_output.txt")
    with open(log_filename, "w", encoding="utf-8") as f:
        print(f"writing {log_filename}")
        f.write("\n".join(logger.contents()))
