import datetime
import sys
import threading
import traceback
import os
from colorama import Fore, Style, init

# Initialize Colorama
init(autoreset=True)

LOG_DIR = os.environ.get("FFPLAN_LOG_DIR") or os.path.join(os.path.expanduser("~"), ".ffplan", "logs")

# level -> (color, console prefix)
LEVELS = {
    "INFO": (Fore.CYAN, ""),
    "SUCCESS": (Fore.GREEN, f"{Style.BRIGHT}✓ {Style.RESET_ALL}{Fore.GREEN}"),
    "WARNING": (Fore.YELLOW, f"{Style.BRIGHT}⚠ {Style.RESET_ALL}{Fore.YELLOW}"),
    "ERROR": (Fore.RED, f"{Style.BRIGHT}✖ {Style.RESET_ALL}{Fore.RED}"),
    "DEBUG": (Fore.WHITE + Style.DIM, ""),
    "TRACEBACK": (Fore.RED, ""),
}


class Logger:
    """Console and file logger shared by every command.

    Console lines go to stderr so that a plan written to stdout stays
    machine-readable. Every line, debug included, is appended to the log
    file; debug lines reach the console only in verbose mode. Safe to call
    from the resolver's worker threads.
    """

    def __init__(self, log_dir=LOG_DIR):
        self.log_dir = log_dir
        self.log_file = os.path.join(
            log_dir,
            f"ffplan_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )
        self.verbose = False
        self._lock = threading.Lock()

    def _write(self, console_line, file_line, echo=True):
        with self._lock:
            if echo:
                print(console_line, file=sys.stderr)
            os.makedirs(self.log_dir, exist_ok=True)
            with open(self.log_file, "a") as f:
                f.write(file_line)

    def _log(self, level, message, echo=True):
        color, prefix = LEVELS[level]
        timestamp = datetime.datetime.now().strftime("%H:%M:%S")
        self._write(
            f"{color}{Style.BRIGHT}[{timestamp}]{Style.RESET_ALL} {color}{prefix}{message}{Style.RESET_ALL}",
            f"[{timestamp}] [{level}] {message}\n",
            echo,
        )

    def info(self, message):
        self._log("INFO", message)

    def step_info(self, message, indent=0):
        # Untimed detail line under the preceding info line.
        prefix = " " * indent
        self._write(f"{Fore.CYAN}{prefix}{message}{Style.RESET_ALL}", f"[STEP] {prefix}{message}\n")

    def success(self, message):
        self._log("SUCCESS", message)

    def warning(self, message):
        self._log("WARNING", message)

    def error(self, message):
        self._log("ERROR", message)

    def debug(self, message):
        self._log("DEBUG", message, echo=self.verbose)

    def exception(self, exc_type, exc_value, exc_traceback):
        self.error(f"An unhandled exception occurred: {exc_value}")
        for line in traceback.format_exception(exc_type, exc_value, exc_traceback):
            for sub_line in line.splitlines():
                if sub_line.strip():
                    self._log("TRACEBACK", f">> {sub_line}")


logger = Logger()

def get_latest_log_file():
    """Return the path to the latest log file, or None."""
    if not os.path.isdir(LOG_DIR):
        return None
    log_files = [os.path.join(LOG_DIR, f) for f in os.listdir(LOG_DIR) if f.endswith(".log")]
    if not log_files:
        return None
    return max(log_files, key=os.path.getctime)
