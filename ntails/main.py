import asyncio
import logging
import signal
import sys

log = logging.getLogger()

stop_signals = ('SIGHUP', 'SIGINT', 'SIGTERM', 'SIGQUIT')


def setup_logging(is_debug):
    """
    Configure logging based on --debug in sys.argv
    :param is_debug:
    """
    root = logging.getLogger()
    [root.removeHandler(h) for h in root.handlers[:]]
    [root.removeFilter(f) for f in root.filters[:]]
    logging.basicConfig(
        format='[%(threadName)s][%(levelname)s] %(module)s:%(funcName)s:%('
               'lineno)s %(message)s',
        level=logging.DEBUG if is_debug else logging.INFO,
        stream=sys.stderr,
    )


def exception_handler(loop, ctx):
    """
    context is a dict object containing the following keys (new keys may be
            introduced in future Python versions):
    'message': Error message;
    'exception' (optional): Exception object;
    'future'    (optional): asyncio.Future instance;
    'task'      (optional): asyncio.Task instance;
    'handle'    (optional): asyncio.Handle instance;
    'asyncgen'  (optional): Asynchronous generator that caused the exception.
    """
    log.error('Unhandled exception: ' + ctx['message'],
              exc_info=ctx.get('exception'))


def add_signal_handlers(loop, callback):
    """stop on hang-up, interrupt, terminate, and quit where supported"""
    installed = []
    for name in stop_signals:
        sig = getattr(signal, name, None)
        if sig is None:
            continue
        try:
            loop.add_signal_handler(sig, callback)
        except NotImplementedError:
            # no loop signal handlers, KeyboardInterrupt still stops
            break
        installed.append(sig)
    return installed


async def async_main(config):
    """
    async main sets up every file, then prints them until done or stopped
    """
    from .cli import Terminal
    from .engine import TailService

    loop = asyncio.get_running_loop()
    loop.set_exception_handler(exception_handler)

    service = TailService(config)
    term = Terminal(color=config.color)
    installed = add_signal_handlers(loop, service.close)
    try:
        await service.loop(term)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        log.debug('close async loop')


def main(argv=None):
    setup_logging('--debug' in (sys.argv if argv is None else argv))

    from .config import Config, ConfigError, argv_parse
    try:
        options = argv_parse(argv)
    except ConfigError as e:
        log.error('%s', e)
        return 1
    setup_logging(options.debug)

    config = Config.from_options(options)
    try:
        asyncio.run(async_main(config))
    except KeyboardInterrupt:
        pass
    except (OSError, ValueError) as e:
        log.error('%s', e)
        return 1
    return 0
