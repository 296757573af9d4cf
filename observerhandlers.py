"""
observerhandlers.py

Implements handler classes for the observer application. Everything here is
read-only: the observer can look at the session but never changes it.
"""

import time

import tornado.web


class BaseHandler(tornado.web.RequestHandler):
    @property
    def engine(self):
        return self.application.engine


class RootHandler(BaseHandler):
    def get(self):
        peers = self.engine.table.peers()
        now = time.time()

        self.set_header("Content-Type", "text/plain; charset=UTF-8")
        self.write("%d peer(s) in session\n" % len(peers))

        for p in peers:
            self.write("%d\t%s\tjoined %ds ago\n" % (
                p.identifier, p.address, now - p.joined_at))


class PeersHandler(BaseHandler):
    def get(self):
        peers = [{
            "id": p.identifier,
            "host": p.address.host,
            "port": p.address.port,
            "joined_at": p.joined_at,
        } for p in self.engine.table.peers()]

        # tornado refuses to write a bare list, so wrap it
        self.write({"peers": peers})


class StatsHandler(BaseHandler):
    def get(self):
        self.write(self.engine.stats())
