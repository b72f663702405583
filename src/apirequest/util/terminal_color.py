class TerminalColorMarks:
    BOLD = "\033[1m"
    BLUE = "\033[94m"
    END = "\033[0m"
