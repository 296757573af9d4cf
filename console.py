"""
console.py

A line based console for whoever is running the relay. Typing `quit` stops
the daemon, and any other line is sent to every peer in the session as an
admin notice. Console input never goes through the peer protocol.
"""

import logging
import sys
import threading


QUIT_COMMAND = "quit"


class OperatorConsole(object):
    def __init__(self, engine, on_quit, stream=None):
        """
        :param engine The RelayEngine to broadcast through
        :param on_quit Called (from the console thread) when `quit` is typed
        :param stream Where lines are read from. Defaults to stdin.
        """
        self.engine = engine
        self.on_quit = on_quit

        if stream is None:
            stream = sys.stdin
        self.stream = stream

        self.thread = None

    def start(self):
        self.thread = threading.Thread(target=self.run, name="console")
        self.thread.daemon = True
        self.thread.start()

    def run(self):
        """
        Reads lines until `quit` or the end of the input. Running out of
        input (e.g. the daemon was started with stdin closed) only stops the
        console, not the daemon.
        """
        for line in self.stream:
            if not self.handle_line(line):
                return

        logging.info("Console input closed")

    def handle_line(self, line):
        """
        :return False once the console should stop reading
        """
        line = line.strip()

        if not line:
            return True

        if line == QUIT_COMMAND:
            logging.info("Quit requested from console")
            self.on_quit()
            return False

        try:
            self.engine.broadcast_admin(line)
        except Exception:
            logging.exception("Error broadcasting console line")

        return True
