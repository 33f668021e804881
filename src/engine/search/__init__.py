"""
どこで: `engine.search` サブパッケージ。
何を: 探索状態（SearchState）・探索レーン（Worker）・乱択多点開始と山登り（algorithms）。
なぜ: 1 レーン内で完結する CPU バウンドな探索ループを、実行層（プロセス/インライン）から分離するため。
"""
