"""likesync - mirror Spotify liked songs into a playlist and rotate the stored token."""
