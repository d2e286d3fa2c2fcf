# Pose Challenge
# Real-time pose matching with a timed hold/score/level challenge loop
