async def run(params, config, logger):
    for line in params.get("lines", []):
        logger.info(line)
