import os
import sys

import uvicorn

from guarded_api.core.config import settings
from guarded_api.web import APP_URI


def main():
    is_linux = sys.platform.startswith("linux")

    if settings.debug:
        os.environ["PYTHONASYNCIODEBUG"] = "1"
        uvicorn.run(
            app=APP_URI,
            host=settings.backend_host,
            port=settings.backend_port,
            reload=settings.reload_uvicorn,
            workers=settings.workers_count,
            loop="uvloop" if is_linux else "auto",
        )
    elif is_linux:
        from guarded_api.web import GunicornApplication, gunicorn_options

        GunicornApplication(APP_URI, gunicorn_options(settings)).run()
    else:
        uvicorn.run(
            app=APP_URI,
            host=settings.backend_host,
            port=settings.backend_port,
            reload=settings.reload_uvicorn,
            workers=settings.workers_count,
        )


if __name__ == "__main__":
    main()
