"""
daemon.py

This is the main application server. The UDP relay and the operator console
run as child threads, and the tornado IOLoop (observer and status log) runs
in the main thread.

The Flock daemon lets any number of peers join a shared session and stream
their state to each other through one well known address, without having to
know or reach each other directly.
"""

import logging
import sys
import threading

import tornado.options
from tornado.options import define, options

import settings

import console
import observer
import receiver
import relay

define("relay_host", default=settings.relay.host,
    help="Address the UDP relay binds to")
define("relay_port", default=settings.relay.port, type=int,
    help="Port the UDP relay binds to")
define("observer_host", default=settings.observer.host,
    help="Address the HTTP observer listens on")
define("observer_port", default=settings.observer.port, type=int,
    help="Port the HTTP observer listens on")
define("no_observer", default=False, type=bool,
    help="Do not serve the HTTP observer")
define("no_console", default=False, type=bool,
    help="Do not read operator commands from stdin")


def apply_options():
    """
    Copies parsed command line options over the defaults in `settings`.
    """
    settings.relay.host = options.relay_host
    settings.relay.port = options.relay_port
    settings.observer.host = options.observer_host
    settings.observer.port = options.observer_port

    if options.no_observer:
        settings.observer.enabled = False
    if options.no_console:
        settings.console.enabled = False


def main(argv=None):
    logging.basicConfig(level = logging.DEBUG)

    tornado.options.parse_command_line(argv)
    apply_options()

    logging.info("Initializing Flock daemon")

    ## Relay server
    relay_server_address = (settings.relay.host, settings.relay.port)

    try:
        relay_server = receiver.RelayServer(relay_server_address,
            relay.RelayEngine)

    except OSError as e:
        logging.critical("Unable to bind the relay to %s:%s: %s",
            relay_server_address[0], relay_server_address[1], e)

        return 1

    engine = relay_server.engine

    logging.info("Relay server listening on %s:%s" %
        relay_server.server_address[:2])

    ## Observer server
    observer_server = observer.ObserverServer(
        (settings.observer.host, settings.observer.port), engine,
        serve_http=settings.observer.enabled)

    ## Operator console
    operator_console = None
    if settings.console.enabled:
        operator_console = console.OperatorConsole(engine,
            observer_server.shutdown)

    # Create threads and set thread properties
    relay_thread = threading.Thread(target = relay_server.serve_forever,
        name = "relay")
    relay_thread.daemon = True

    try:
        logging.info("Starting relay thread ...")
        relay_thread.start()

        if operator_console is not None:
            logging.info("Starting operator console ...")
            operator_console.start()

        logging.info("Running tornado IOLoop in main thread ...")
        observer_server.run()

    except KeyboardInterrupt:
        logging.info("KeyboardInterrupt. Exiting")

    except Exception:
        logging.exception("Unknown exception in main thread. Exiting")

        relay_server.stop_server()

        return 1

    # Stop listening & close sockets
    observer_server.shutdown()
    relay_server.stop_server()

    logging.info("bye!")

    return 0


if __name__ == "__main__":
    sys.exit(main())
