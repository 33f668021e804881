"""
どこで: `engine.runtime` サブパッケージ。
何を: WorkerPool（プロセス/インラインのレーン群）と Model（探索→縮約→確定のオーケストレータ）。
なぜ: CPU バウンドな探索を並列レーンへ分配し、バリア後の逐次縮約と確定だけを共有状態に触れさせるため。
"""
