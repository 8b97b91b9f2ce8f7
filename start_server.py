"""
Start the detection context widget backend
"""
import uvicorn
import sys

from detection_context.core.config import settings

if __name__ == "__main__":
    print("Starting Detection Context backend...")
    print(f"Python: {sys.version}")

    try:
        uvicorn.run(
            "detection_context.main:app",
            host="127.0.0.1",
            port=8000,
            reload=settings.debug,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    except Exception as e:
        print(f"\nError starting server: {e}")
        raise
