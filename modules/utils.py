# modules/utils.py

##################################### Imports #####################################
# Libraries
from collections import deque
from datetime import datetime

# Modules
import config

###################################################################################

# Custom Logger
def log(message, level="INFO"):
    """
    Standardized logger for the project.
    Levels: DEBUG for internal diagnostics (only printed in DEBUG_MODE), INFO for standart stuff,
    WARNING for weird occasions, ERROR for unwanted behaviour
    """
    if level == "DEBUG" and not config.DEBUG_MODE:
        return

    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    print(f"[{timestamp}] [{level}] {message}")


class LogBuffer:
    """ On-screen event log: bounded, newest line first, oldest line evicted on overflow """

    def __init__(self, limit=config.LOG_LIMIT):
        self.limit_ = limit
        self.lines_ = deque(maxlen=limit)

    def __len__(self):
        return len(self.lines_)

    def append(self, message):
        """ Stamps the message with the wall clock time and puts it on top """
        line = f"[{datetime.now().strftime('%H:%M:%S')}] {message}"
        self.lines_.appendleft(line) # deque drops from the right end when full
        return line

    def lines(self):
        return list(self.lines_)

    def clear(self):
        self.lines_.clear()
