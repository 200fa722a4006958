import uvicorn
import os

if __name__ == "__main__":
    # Durable board file lives here unless INSTAPLOT_STORAGE_DIR says otherwise
    os.environ.setdefault("INSTAPLOT_STORAGE_DIR", os.path.join("data", "board"))

    print("Starting InstaPlot Board API Server...")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "instaplot.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
