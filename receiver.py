"""
receiver.py

This module handles the UDP side of the relay. Peers send datagrams to the
relay's address and the relay answers from the same socket, so a peer only
ever needs to know one address. Datagrams can be lost or reordered; the relay
does nothing to hide that from the peers.
"""

import logging
import socketserver

from settings import relay as relay_settings


class RelayRequestHandler(socketserver.BaseRequestHandler):
    """
    A new handler instance is created for every datagram a peer sends. Each
    handler is run in its own thread, and hands the datagram to the relay
    engine, which serializes the actual work.
    """
    def handle(self):
        data = self.request[0]

        try:
            self.server.engine.handle(data, self.client_address)

        except Exception:
            logging.exception("An error occurred handling datagram from %s",
                self.client_address)


class RelayServer(socketserver.ThreadingMixIn, socketserver.UDPServer):
    # Allow binding to the same address if the app didn't exit cleanly
    allow_reuse_address = True
    # Ensure request threads are terminated when the application exits
    daemon_threads = True

    def __init__(self, server_address, engine_factory,
                 handler=RelayRequestHandler,
                 max_packet_size=None):
        """
        Binds the socket and builds the engine.

        :param server_address The (host, port) to listen on
        :param engine_factory Called with this server (the transport) to
                              build the RelayEngine
        :param max_packet_size The largest datagram read in one go

        :raises OSError When the socket cannot be bound
        """
        if max_packet_size is None:
            max_packet_size = relay_settings.max_packet_size
        self.max_packet_size = max_packet_size

        socketserver.UDPServer.__init__(self, server_address, handler)

        self.engine = engine_factory(self)

    def send(self, data, address):
        """
        Sends a datagram to a peer from the relay's own socket.

        :raises OSError When the datagram cannot be sent
        """
        self.socket.sendto(data, address)

    def stop_server(self):
        """
        Stop listening, close the socket and forget the session
        """
        self.shutdown()
        self.server_close()
        self.engine.close()
