"""
Console logger for blake3build.

Every message is printed in colour and mirrored, uncoloured, into a per-run
file under ~/.blake3build/logs. Warnings and errors always go to stderr;
everything else goes to stdout unless a command has reserved stdout for the
data it prints.
"""
import contextlib
import datetime
import os
import sys
import time
import traceback
from colorama import Fore, Style, init

init(autoreset=True)

LOG_DIR = os.path.join(os.path.expanduser("~"), ".blake3build", "logs")
os.makedirs(LOG_DIR, exist_ok=True)

# level -> (colour, console marker, always on stderr)
LEVELS = {
    "INFO": (Fore.CYAN, "", False),
    "STEP": (Fore.CYAN, "", False),
    "SUCCESS": (Fore.GREEN, "✓ ", False),
    "DEBUG": (Fore.WHITE + Style.DIM, "", False),
    "WARNING": (Fore.YELLOW, "⚠ ", True),
    "ERROR": (Fore.RED, "✖ ", True),
    "TRACEBACK": (Fore.RED, "", True),
}


def _format_amount(value, unit):
    if unit != "b":
        return str(int(value))
    for suffix, size in (("GB", 1024 ** 3), ("MB", 1024 ** 2), ("KB", 1024)):
        if value >= size:
            return f"{value / size:.1f} {suffix}"
    return f"{int(value)} B"


def _item_size(item):
    try:
        return len(item)
    except TypeError:
        return 1


class Logger:
    def __init__(self, log_dir=LOG_DIR):
        stamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_file = os.path.join(log_dir, f"blake3build_{stamp}.log")
        self.stdout_reserved = False

    def console(self, level):
        """Returns the stream a message of ``level`` is printed to."""
        # looked up per call so that swapped streams (CliRunner) are honoured
        if self.stdout_reserved or LEVELS[level][2]:
            return sys.stderr
        return sys.stdout

    @contextlib.contextmanager
    def reserve_stdout(self):
        """Sends every message to stderr while a command writes its result to stdout."""
        previous = self.stdout_reserved
        self.stdout_reserved = True
        try:
            yield
        finally:
            self.stdout_reserved = previous

    def _log(self, level, message, indent=0, timestamp=True):
        colour, marker, _ = LEVELS[level]
        prefix = " " * indent
        now = datetime.datetime.now().strftime("%H:%M:%S")

        head = f"{colour}{Style.BRIGHT}[{now}]{Style.RESET_ALL} " if timestamp else ""
        if marker:
            marker = f"{colour}{Style.BRIGHT}{marker}{Style.RESET_ALL}"
        print(f"{head}{prefix}{marker}{colour}{message}{Style.RESET_ALL}", file=self.console(level))

        record = f"[{now}] [{level}]" if timestamp else f"[{level}]"
        with open(self.log_file, "a") as f:
            f.write(f"{record} {prefix}{message}\n")

    def info(self, message):
        self._log("INFO", message)

    def step_info(self, message, indent=0):
        self._log("STEP", message, indent=indent, timestamp=False)

    def success(self, message):
        self._log("SUCCESS", message)

    def warning(self, message):
        self._log("WARNING", message)

    def error(self, message):
        self._log("ERROR", message)

    def debug(self, message):
        self._log("DEBUG", message)

    def progress(self, iterable, description="Downloading", total=None, bar_length=30, unit="b"):
        """
        Yields the items of ``iterable`` while redrawing a one-line progress bar.

        ``total`` is a byte count when ``unit`` is "b", an item count otherwise.
        Without a total and a sized iterable no bar is drawn.
        """
        if not total:
            try:
                total = len(iterable)
            except TypeError:
                yield from iterable
                return

        stream = self.console("INFO")
        print(f"{description}...", file=stream)
        start = time.time()
        done = 0

        for item in iterable:
            yield item
            done += _item_size(item) if unit == "b" else 1
            fraction = min(1.0, done / total)
            filled = int(bar_length * fraction)
            bar = Fore.GREEN + "━" * filled + Style.RESET_ALL + "╺" * (bar_length - filled)
            elapsed = time.time() - start
            rate = done / elapsed if elapsed > 0 else 0
            stream.write(
                f"\r{fraction * 100:3.0f}% | {bar} | "
                f"{_format_amount(done, unit)}/{_format_amount(total, unit)} • "
                f"{_format_amount(rate, unit)}/s"
            )
            stream.flush()

        print(file=stream)
        print(f"✅ {description} complete!", file=stream)

    def exception(self, exc_type, exc_value, exc_traceback):
        self.error(f"An unhandled exception occurred: {exc_value}")
        for chunk in traceback.format_exception(exc_type, exc_value, exc_traceback):
            for line in chunk.splitlines():
                if line.strip():
                    self._log("TRACEBACK", f">> {line}")


logger = Logger()


def get_latest_log_file():
    """Return the path to the latest log file."""
    log_files = [os.path.join(LOG_DIR, f) for f in os.listdir(LOG_DIR) if f.endswith(".log")]
    if not log_files:
        return None
    return max(log_files, key=os.path.getctime)
