"""

Serf Event Relay

The relay is started by an event source (such as a serf agent's event-handler hook) once per event.
It forwards the event's context and payload to a listener over a TCP connection, and for query
events it copies the listener's answer back to the event source.

- Connector: resolves the listener host/port into candidate endpoints and opens a stream connection
  to the first candidate that accepts one. The connector owns the candidates and the connection.
- Conduit: the connection itself. Provides a readable source and a writable sink, and can close its
  write direction independently of the read direction.
- Envelope: the wire format. Each environment entry is sent as KEY=VALUE followed by a zero byte, and a
  lone zero byte closes the environment block. Raw stdin bytes follow.
- Pump: copies one readable source to a sink until end-of-stream, waiting for readiness before each
  non-blocking read.
- Relay: runs the stages in order and turns any failure into a diagnostic and an exit status.

The listener decodes the envelope with the helpers in serfrelay.event.


## Threading

Everything runs on the calling thread. The only blocking points are connect() and the readiness wait
inside the pump, which has no timeout. The read direction of the connection is only drained for
query events; otherwise whatever the listener sends is dropped when the socket is closed.

"""
