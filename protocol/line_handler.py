from protocol.errors import MalformedRequestError

MAX_LINE_LENGTH = 4096


def send_line(sock, text):
    """
    Send a single line of text over a socket, ending with a newline.
    """
    message = text + '\n'
    sock.sendall(message.encode('utf-8'))


def recv_line(sock, timeout=None):
    """
    Receive one newline-terminated line from a socket.

    Returns the text without its terminator. If the peer closes before a
    newline arrives, whatever was received is returned (possibly empty).
    Bytes after the first newline are discarded: the protocol allows one
    request per connection. More than MAX_LINE_LENGTH bytes without a
    newline raises MalformedRequestError.
    """
    sock.settimeout(timeout)
    buffer = b""
    while b'\n' not in buffer:
        if len(buffer) >= MAX_LINE_LENGTH:
            raise MalformedRequestError(f"Line exceeds {MAX_LINE_LENGTH} bytes")
        chunk = sock.recv(4096)
        if not chunk:
            break
        buffer += chunk

    line = buffer.split(b'\n', 1)[0]
    return line.decode('utf-8', errors='replace').rstrip('\r')
