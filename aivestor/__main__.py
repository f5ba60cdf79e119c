import uvicorn

from aivestor.config import GlobalConfig

if __name__ == "__main__":
    settings = GlobalConfig()
    uvicorn.run("aivestor.main:app", host=settings.app_host, port=settings.app_port, reload=settings.debug)
