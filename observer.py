"""
observer.py

Serves a small HTTP view of the relay so an operator can see who is in the
session and how much traffic is going through, without joining the session.
"""

import asyncio
import logging

import tornado.ioloop
import tornado.web

from settings import observer as obs_settings

import observerhandlers


class ObserverApplication(tornado.web.Application):
    def __init__(self, engine, debug=False):
        handlers = [
            (r"/", observerhandlers.RootHandler),
            (r"/peers", observerhandlers.PeersHandler),
            (r"/stats", observerhandlers.StatsHandler),
        ]

        super(ObserverApplication, self).__init__(handlers, debug=debug)

        # The RelayEngine; handlers only read from it
        self.engine = engine


def log_status(engine):
    stats = engine.stats()

    logging.info("Session status: %d peer(s), %d received, %d dropped, "
        "%d sent, %d send failure(s)", stats["peers"], stats["received"],
        stats["dropped"], stats["sent"], stats["send_failures"])


class ObserverServer(object):
    """
    Runs the tornado IOLoop. Besides the HTTP view, the loop also drives a
    periodic status line in the log. `run` blocks until `shutdown` is
    called from any thread.
    """
    def __init__(self, server_address, engine, serve_http=True):
        self.engine = engine
        self.server_address = server_address
        self.serve_http = serve_http

        self.application = ObserverApplication(engine)

        self.io_loop = None
        self._stop_event = None
        self._shutdown_requested = False

    async def serve(self):
        self._stop_event = asyncio.Event()
        self.io_loop = tornado.ioloop.IOLoop.current()

        if self._shutdown_requested:
            self._stop_event.set()

        http_server = None
        if self.serve_http:
            http_server = self.application.listen(self.server_address[1],
                                                  self.server_address[0])

            logging.info("Observer server listening on %s:%s" %
                tuple(self.server_address))

        status_timer = tornado.ioloop.PeriodicCallback(
                                    lambda: log_status(self.engine),
                                    obs_settings.status_interval)
        status_timer.start()

        try:
            await self._stop_event.wait()

        finally:
            status_timer.stop()

            if http_server is not None:
                http_server.stop()

    def run(self):
        asyncio.run(self.serve())

    def shutdown(self):
        self._shutdown_requested = True

        if self.io_loop is not None:
            self.io_loop.add_callback(self._stop_event.set)
