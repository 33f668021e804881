"""
どこで: `engine.core` サブパッケージ。
何を: ピクセルバッファ（Bitmap）・スキャンライン表現・ラスタライザ・コンポジタを提供。
なぜ: 形状/探索/実行層から共通に使う画素演算の基盤を、上位層へ依存せずに閉じるため。
"""
