"""Read access to deployment records owned by the deployment lifecycle."""
