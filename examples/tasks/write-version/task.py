from pathlib import Path


async def run(params, config, logger):
    path = Path(params["path"])
    path.write_text(params["content"] + "\n", encoding="utf-8")
    logger.info(f"Wrote {path}")
