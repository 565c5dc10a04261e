"""UI components for the Feature Annotator

- AnnotationRenderer: backend-independent drawing of image and shapes
- AnnotationCanvas: QWidget forwarding pointer input to the session
- AnnotationToolbar: zoom, mode, navigation and shape-kind controls
"""
