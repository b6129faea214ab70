class Client:
    """
    Base client class holding the connection parameters.
    """

    def __init__(self, server_url: str, room: str):
        """
        Initialize client with connection parameters.

        Args:
            server_url (str): WebSocket URL of the chat server
            room (str): Room to join on the first connection
        """
        self.server_url = server_url
        self.room = room

    def run(self) -> int:
        """
        Abstract method to start the client.
        Must be implemented by subclasses; returns the process exit code.
        """
        raise NotImplementedError
