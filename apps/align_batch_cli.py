import sys, pathlib; sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from falign.cli import app

if __name__ == "__main__":
    app()


'''
Example usage:
python apps/align_batch_cli.py models/haarcascade_frontalface_default.xml models/lbfmodel.yaml \
    images.txt results.txt
python apps/align_batch_cli.py models/scrfd_10g_bnkps.onnx models/1k3d68.onnx images.txt results.txt show \
    --detector scrfd --aligner insightface --score-thresh 0.5
'''
