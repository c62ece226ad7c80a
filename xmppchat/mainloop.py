#
# (C) Copyright 2011 Jacek Konieczny <jajcus@jajcus.net>
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License Version
# 2.1 as published by the Free Software Foundation.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program; if not, write to the Free Software
# Foundation, Inc., 675 Mass Ave, Cambridge, MA 02139, USA.
#

"""Event loop thread.

The protocol engine is asyncio-based while the client's own control flow is
plain blocking code. The engine's loop is run in a background thread and
the blocking side submits coroutines to it.
"""

__docformat__ = "restructuredtext en"

import asyncio
import logging
import threading
import concurrent.futures

logger = logging.getLogger("xmppchat.mainloop")

class ThreadedEventLoop(object):
    """asyncio event loop running in a dedicated thread.

    :Ivariables:
        - `loop`: the event loop
        - `thread`: the thread running `loop`
    :Types:
        - `loop`: :std:`asyncio.AbstractEventLoop`
        - `thread`: :std:`threading.Thread`
    """
    def __init__(self, name = u"xmppchat-loop"):
        self.loop = asyncio.new_event_loop()
        self.thread = threading.Thread(target = self._run, name = name)
        self.thread.daemon = True
        self._started = threading.Event()

    def start(self):
        """Start the loop thread and wait until the loop runs."""
        self.thread.start()
        self._started.wait()

    def _run(self):
        """Thread body: run the loop until `stop`."""
        asyncio.set_event_loop(self.loop)
        self.loop.call_soon(self._started.set)
        try:
            self.loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self.loop)
            for task in pending:
                task.cancel()
            if pending:
                self.loop.run_until_complete(asyncio.gather(*pending,
                                                return_exceptions = True))
            self.loop.close()
            logger.debug("Event loop closed")

    @property
    def running(self):
        """`True` while the loop thread is alive."""
        return self.thread.is_alive()

    def call(self, coro, timeout = None):
        """Run `coro` in the loop and wait for its result.

        :Parameters:
            - `coro`: the coroutine to run
            - `timeout`: maximum time to wait (in seconds), `None` for no
              limit

        :raise TimeoutError: when `timeout` expires; the coroutine is
            cancelled
        :raise RuntimeError: when the loop is not running
        :return: the coroutine result
        """
        if not self.running:
            coro.close()
            raise RuntimeError("Event loop is not running")
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        try:
            return future.result(timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise TimeoutError("Operation timed out")

    def stop(self, timeout = 5.0):
        """Stop the loop and wait for the thread to finish."""
        if not self.running:
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        if threading.current_thread() is not self.thread:
            self.thread.join(timeout)

# vi: sts=4 et sw=4
