"""
A one-shot TCP listener that stands in for the receiving end of a relay in tests.
"""
import socket
import threading


class OneShotListener(threading.Thread):
    """
    Accepts a single connection on the loopback interface, reads it to end of stream and
    then optionally answers before closing.
    """

    def __init__(self, response=None, host='127.0.0.1'):
        super().__init__(daemon=True)
        self.server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.server.bind((host, 0))
        self.server.listen(1)
        self.host = host
        self.port = self.server.getsockname()[1]
        self.response = response
        self.received = b""
        self.error = None

    def run(self):
        try:
            client, _ = self.server.accept()
            with client:
                while True:
                    chunk = client.recv(4096)
                    if not chunk:
                        break
                    self.received += chunk
                if self.response is not None:
                    client.sendall(self.response)
        except OSError as e:
            # the relay may have closed its end without waiting for an answer
            self.error = e
        finally:
            self.server.close()

    def finish(self, timeout=5):
        self.join(timeout)
        return self.received
