"""api/routes — HTTP routers."""
