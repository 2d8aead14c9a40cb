import os
import sys

# Add mechanism_kinematics to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
