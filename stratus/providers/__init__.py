"""Provider clients built on the async invocation core."""
